#!/usr/bin/env python3
"""
Builds a 4D bet slip from a text file of bet lines and stores it for the bet slip page.

- Reads a text file (or stdin with "-") with one bet per line:
    "1234"              number only, amounts filled in later
    "1234-5-0-0-0-2"    BIG 5, STRAIGHT (4A) 2
    "R234-2"            roll: 0234..9234, BIG 2 each
  Amount order: big - small - big ibox - small ibox - straight. Missing amounts are 0.
- Numbers given with --add go on the slip first and must not repeat.
- Lines naming a number already on the slip add their amounts to it.
- Writes "daheng4dBids" and "daheng4dTotal" into a JSON key-value store file
  (default bet_slip_storage.json), then points to official-bet-slip/index.html.

Usage:
  python slip_builder.py --input bets.txt
  python slip_builder.py -a 1234 -a 88 --input bets.txt --store out.json
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from bid_engine import (
    BidEntryError,
    BidLedger,
    CATEGORIES,
    LABELS,
    NothingAddedError,
    classify,
    money,
    process_chunk,
    submit,
)

CURRENCY = "RM"
DEFAULT_STORE = "bet_slip_storage.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Build a 4D bet slip from bet lines and store it for the bet slip page.")
    ap.add_argument("--input", "-i", help="Path to text file with bet lines ('-' for stdin).")
    ap.add_argument("--add", "-a", action="append", default=[], metavar="NUMBER",
                    help="Put a single number on the slip (repeatable). Duplicates are refused.")
    ap.add_argument("--store", "-s", default=DEFAULT_STORE,
                    help=f"JSON key-value store to write the slip into (default {DEFAULT_STORE}).")
    ap.add_argument("--verbose", "-v", action="store_true", help="Log every ledger change.")
    args = ap.parse_args(argv)
    if not args.input and not args.add:
        ap.error("nothing to do: give --input and/or --add")
    return args


def read_lines(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def load_store(path: str) -> Dict[str, str]:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str, store: Dict[str, str]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(store, f, indent=2)


class JsonFileStore(dict):
    """Key-value store kept in a JSON file; every assignment is written straight through."""

    def __init__(self, path: str):
        super().__init__(load_store(path))
        self.path = path

    def __setitem__(self, key: str, value: str) -> None:
        super().__setitem__(key, value)
        write_json(self.path, self)


def print_slip(ledger: BidLedger) -> None:
    header = "  ".join(f"{LABELS[c]:>13}" for c in CATEGORIES)
    print(f"  {'NUMBER':<6}  {header}  IBOX")
    for number, amounts in ledger.entries():
        cols = "  ".join(f"{amounts[c]:>13}" for c in CATEGORIES)
        print(f"  {number:<6}  {cols}  {classify(number)}-way")
    print(f"  Total: {CURRENCY} {money(ledger.total())}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ledger = BidLedger()
    for raw in args.add:
        try:
            number = ledger.add_number(raw)
        except BidEntryError as e:
            print(f"[warn] {e}")
            continue
        print(f"[ok] Added {number}")

    if args.input:
        try:
            result = process_chunk(read_lines(args.input), ledger)
        except NothingAddedError as e:
            for s in e.skipped:
                print(f"[warn] line {s.line_no}: {s.reason}")
            print(f"[error] {e}")
            return 1
        except BidEntryError as e:
            print(f"[error] {e}")
            return 1
        for s in result.skipped:
            print(f"[warn] line {s.line_no}: {s.reason}")
        print(f"[ok] Parsed {result.lines_added} line(s) into {len(result.numbers)} number(s).")

    if not len(ledger):
        print("[error] The slip is empty, nothing to submit.")
        return 1

    print_slip(ledger)

    store = JsonFileStore(args.store)

    def navigate(path: str) -> None:
        print(f"[ok] Wrote {store.path}")
        print(f"[ok] Next: open {path}")

    submit(ledger, store, navigate)
    return 0


if __name__ == "__main__":
    sys.exit(main())
