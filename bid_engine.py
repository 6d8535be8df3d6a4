# bid_engine.py
# 4D Bid Slip: parsing, roll expansion, ledger and submission payload.
#
# Workflow:
# 1) Each pasted line is "<token>[-big[-small[-big ibox[-small ibox[-straight]]]]]".
#    <token> is 4 digits, or 4 characters with one R/X wildcard (a "roll").
# 2) A roll token expands into the 10 numbers obtained by putting 0..9 at the wildcard.
# 3) Every resulting number is upserted into the ledger. Repeats add up.
# 4) On submit the ledger is flattened into BIG / SML / IBOX / STRAIGHT (4A) records,
#    IBOX labels carrying the permutation count, e.g. "BIG IBOX(12)".
#
# Requires: numpy

from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterator, List, MutableMapping, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# ---------- Contract with the receipt page ----------
BIDS_KEY = "daheng4dBids"
TOTAL_KEY = "daheng4dTotal"
BET_SLIP_PATH = "official-bet-slip/index.html"

NUM_DIGITS = 4
MAX_AMOUNT_SEGMENTS = 5
WILDCARD = "R"  # canonical roll marker; "X" is folded into it

TOKEN_RE = re.compile(r"[0-9RX]{4}", re.IGNORECASE)
NUMBER_RE = re.compile(r"[0-9]{4}")
ENTRY_RE = re.compile(r"[0-9]{1,4}")
AMOUNT_RE = re.compile(r"[0-9]+")

# digit-repetition shape (sorted desc) -> distinct permutations
IBOX_VARIATIONS: Dict[Tuple[int, ...], int] = {
    (1, 1, 1, 1): 24,
    (2, 1, 1): 12,
    (2, 2): 6,
    (3, 1): 4,
    (4,): 1,
}


# ---------- Errors ----------
class BidEntryError(ValueError):
    """Base class for anything the user typed that could not go on the slip."""


class MalformedTokenError(BidEntryError):
    pass


class DuplicateNumberError(BidEntryError):
    def __init__(self, number: str):
        super().__init__(f"Number {number} is already on the slip.")
        self.number = number


class EmptyBatchError(BidEntryError):
    pass


class NothingAddedError(BidEntryError):
    def __init__(self, skipped: List["SkippedLine"]):
        super().__init__("No valid bet lines were found.")
        self.skipped = skipped


# ---------- Amounts ----------
class Category(Enum):
    BIG = "big"
    SMALL = "small"
    BIG_IBOX = "big_ibox"
    SMALL_IBOX = "small_ibox"
    STRAIGHT = "straight"


CATEGORIES: Tuple[Category, ...] = tuple(Category)

LABELS = {
    Category.BIG: "BIG",
    Category.SMALL: "SML",
    Category.BIG_IBOX: "BIG IBOX",
    Category.SMALL_IBOX: "SML IBOX",
    Category.STRAIGHT: "STRAIGHT (4A)",
}
IBOX_CATEGORIES = {Category.BIG_IBOX, Category.SMALL_IBOX}


@dataclass(frozen=True)
class AmountVector:
    big: int = 0
    small: int = 0
    big_ibox: int = 0
    small_ibox: int = 0
    straight: int = 0

    def __post_init__(self):
        for cat in CATEGORIES:
            if self[cat] < 0:
                raise ValueError(f"{LABELS[cat]} amount cannot be negative (got {self[cat]}).")

    @classmethod
    def from_values(cls, values) -> "AmountVector":
        return cls(*[int(v) for v in values])

    def __getitem__(self, cat: Category) -> int:
        return getattr(self, cat.value)

    def __iter__(self) -> Iterator[int]:
        return (self[cat] for cat in CATEGORIES)

    def __add__(self, other: "AmountVector") -> "AmountVector":
        return AmountVector.from_values(a + b for a, b in zip(self, other))

    def replace(self, cat: Category, value: int) -> "AmountVector":
        values = list(self)
        values[CATEGORIES.index(cat)] = int(value)
        return AmountVector.from_values(values)

    @property
    def total(self) -> int:
        return sum(self)

    def is_zero(self) -> bool:
        return self.total == 0


ZERO = AmountVector()


# ---------- Permutation classifier ----------
def _check_number(number: str) -> str:
    if not isinstance(number, str) or not NUMBER_RE.fullmatch(number):
        raise MalformedTokenError(f"'{number}' is not a {NUM_DIGITS}-digit number.")
    return number


def classify(number: str) -> int:
    """
    IBOX variation of a 4-digit number: how many distinct orderings its digits have.
    1111 -> 1, 1112 -> 4, 1122 -> 6, 1123 -> 12, 1234 -> 24.
    """
    digits = np.array([int(c) for c in _check_number(number)])
    _, counts = np.unique(digits, return_counts=True)
    shape = tuple(sorted(counts.tolist(), reverse=True))
    return IBOX_VARIATIONS[shape]


# ---------- Roll expander ----------
def normalize_token(token: str) -> str:
    """Upper-case a number/roll token and fold both wildcard letters into 'R'."""
    s = token.strip().upper()
    if not TOKEN_RE.fullmatch(s):
        raise MalformedTokenError(
            f"Invalid token '{token.strip()}'. Use 4 digits, or 4 characters with one R/X roll marker."
        )
    s = s.replace("X", WILDCARD)
    if s.count(WILDCARD) > 1:
        raise MalformedTokenError(f"Invalid token '{token.strip()}': only one R/X roll marker is allowed.")
    return s


def expand(pattern: str) -> List[str]:
    """
    Expand a roll pattern into its 10 numbers, wildcard digit 0..9 ascending.
    Anything other than exactly one wildcard is rejected rather than half-expanded.
    """
    s = normalize_token(pattern)
    if WILDCARD not in s:
        raise MalformedTokenError(f"'{pattern}' has no R/X roll marker to expand.")
    pos = s.index(WILDCARD)
    return [s[:pos] + str(d) + s[pos + 1:] for d in range(10)]


# ---------- Line parser ----------
class LineIntent(Enum):
    BARE = "bare"          # token only, amounts filled in later
    ZERO = "zero"          # amounts given, all zero
    POSITIVE = "positive"  # at least one amount > 0


@dataclass(frozen=True)
class ParsedLine:
    token: str
    amounts: AmountVector
    intent: LineIntent

    @property
    def is_roll(self) -> bool:
        return WILDCARD in self.token

    def numbers(self) -> List[str]:
        return expand(self.token) if self.is_roll else [self.token]

    def amounts_to_apply(self) -> AmountVector:
        return self.amounts if self.intent is LineIntent.POSITIVE else ZERO


def _parse_amount(seg: str) -> int:
    s = seg.strip()
    return int(s) if AMOUNT_RE.fullmatch(s) else 0


def parse_line(raw: str) -> ParsedLine:
    """
    Parse one bet line, e.g. "1234-5-0-0-0-2" or "r234-2".
    Raises MalformedTokenError when the token is not a number or single-roll pattern.
    """
    parts = raw.strip().split("-")
    token = normalize_token(parts[0])
    segments = parts[1:]
    if len(segments) > MAX_AMOUNT_SEGMENTS:
        logger.debug("Ignoring %d extra amount segment(s) in %r", len(segments) - MAX_AMOUNT_SEGMENTS, raw)
    values = [_parse_amount(s) for s in segments[:MAX_AMOUNT_SEGMENTS]]
    values += [0] * (MAX_AMOUNT_SEGMENTS - len(values))
    amounts = AmountVector.from_values(values)

    if not segments:
        intent = LineIntent.BARE
    elif amounts.is_zero():
        intent = LineIntent.ZERO
    else:
        intent = LineIntent.POSITIVE
    return ParsedLine(token=token, amounts=amounts, intent=intent)


# ---------- Ledger ----------
class BidLedger:
    """
    Number -> AmountVector, in the order numbers first appeared.
    The ledger is the only source of truth; the total is always derived from it.
    """

    def __init__(self):
        self._entries: Dict[str, AmountVector] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, number: str) -> bool:
        return number in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, number: str) -> Optional[AmountVector]:
        return self._entries.get(number)

    def entries(self) -> List[Tuple[str, AmountVector]]:
        return list(self._entries.items())

    def upsert(self, number: str, amounts: AmountVector = ZERO) -> AmountVector:
        _check_number(number)
        merged = self._entries.get(number, ZERO) + amounts
        self._entries[number] = merged
        logger.debug("upsert %s += %s -> %s", number, tuple(amounts), tuple(merged))
        return merged

    def add_number(self, raw: str) -> str:
        """Single-entry add: pads to 4 digits and refuses numbers already on the slip."""
        s = (raw or "").strip()
        if not s:
            raise EmptyBatchError("Please enter a 4-digit number first.")
        if not ENTRY_RE.fullmatch(s):
            raise MalformedTokenError(f"Invalid number '{s}'. Use up to 4 digits.")
        number = s.zfill(NUM_DIGITS)
        if number in self._entries:
            raise DuplicateNumberError(number)
        self.upsert(number)
        return number

    def set_amount(self, number: str, cat: Category, value: int) -> AmountVector:
        if number not in self._entries:
            raise KeyError(number)
        updated = self._entries[number].replace(cat, value)
        self._entries[number] = updated
        return updated

    def remove(self, number: str) -> bool:
        return self._entries.pop(number, None) is not None

    def total(self) -> Decimal:
        return Decimal(sum(v.total for v in self._entries.values()))


# ---------- Chunk driver ----------
@dataclass(frozen=True)
class SkippedLine:
    line_no: int
    raw: str
    reason: str


@dataclass
class ChunkResult:
    lines_added: int = 0
    numbers: List[str] = field(default_factory=list)
    skipped: List[SkippedLine] = field(default_factory=list)


def process_chunk(text: str, ledger: BidLedger) -> ChunkResult:
    """
    Feed a pasted batch into the ledger, one line at a time.
    Bad lines are skipped and reported; only an empty batch or a batch that
    added nothing is rejected as a whole.
    """
    if not (text or "").strip():
        raise EmptyBatchError("Please paste at least one bet line.")

    result = ChunkResult()
    for line_no, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            parsed = parse_line(raw)
        except MalformedTokenError as e:
            logger.warning("Skipping line %d (%r): %s", line_no, raw.strip(), e)
            result.skipped.append(SkippedLine(line_no, raw.strip(), str(e)))
            continue

        amounts = parsed.amounts_to_apply()
        for number in parsed.numbers():
            ledger.upsert(number, amounts)
            if number not in result.numbers:
                result.numbers.append(number)
        result.lines_added += 1

    if result.lines_added == 0:
        raise NothingAddedError(result.skipped)
    return result


# ---------- Submission ----------
@dataclass(frozen=True)
class BetRecord:
    number: str
    type: str
    amount: str

    def to_dict(self) -> Dict[str, str]:
        return {"number": self.number, "type": self.type, "amount": self.amount}


def money(value) -> str:
    return f"{Decimal(value):.2f}"


def category_label(number: str, cat: Category) -> str:
    label = LABELS[cat]
    if cat in IBOX_CATEGORIES:
        n = classify(number)
        if n > 1:
            label = f"{label}({n})"
    return label


def serialize(ledger: BidLedger) -> Tuple[List[BetRecord], Decimal]:
    records: List[BetRecord] = []
    for number, amounts in ledger.entries():
        for cat in CATEGORIES:
            if amounts[cat] > 0:
                records.append(BetRecord(number, category_label(number, cat), money(amounts[cat])))
    return records, ledger.total()


def build_payload(ledger: BidLedger) -> Dict[str, str]:
    """The two storage values the bet slip page reads back."""
    records, total = serialize(ledger)
    bids = json.dumps([r.to_dict() for r in records], separators=(",", ":"))
    return {BIDS_KEY: bids, TOTAL_KEY: money(total)}


def submit(ledger: BidLedger, store: MutableMapping[str, str], navigate: Callable[[str], None]) -> Dict[str, str]:
    """Write both payload entries, then hand off to the bet slip page. No rollback."""
    payload = build_payload(ledger)
    for key, value in payload.items():
        store[key] = value
    logger.info("Submitted %d number(s), total %s", len(ledger), payload[TOTAL_KEY])
    navigate(BET_SLIP_PATH)
    return payload
