# tests/test_submission.py
import json
from decimal import Decimal

from bid_engine import (
    BET_SLIP_PATH,
    BIDS_KEY,
    TOTAL_KEY,
    AmountVector,
    BetRecord,
    BidLedger,
    Category,
    build_payload,
    category_label,
    process_chunk,
    serialize,
    submit,
)


def test_serialize_skips_zero_categories():
    ledger = BidLedger()
    process_chunk("1234-5-0-0-0-2", ledger)
    records, total = serialize(ledger)
    assert [r.to_dict() for r in records] == [
        {"number": "1234", "type": "BIG", "amount": "5.00"},
        {"number": "1234", "type": "STRAIGHT (4A)", "amount": "2.00"},
    ]
    assert total == Decimal(7)


def test_ibox_labels_carry_variation():
    ledger = BidLedger()
    process_chunk("1123", ledger)
    ledger.upsert("1123", AmountVector(big_ibox=10))
    process_chunk("1111-0-0-10", ledger)
    process_chunk("1122-0-0-0-3", ledger)

    records, _ = serialize(ledger)
    assert records == [
        BetRecord("1123", "BIG IBOX(12)", "10.00"),
        BetRecord("1111", "BIG IBOX", "10.00"),
        BetRecord("1122", "SML IBOX(6)", "3.00"),
    ]


def test_category_labels():
    assert category_label("1234", Category.BIG) == "BIG"
    assert category_label("1234", Category.SMALL) == "SML"
    assert category_label("1234", Category.STRAIGHT) == "STRAIGHT (4A)"
    assert category_label("1234", Category.BIG_IBOX) == "BIG IBOX(24)"
    assert category_label("7770", Category.SMALL_IBOX) == "SML IBOX(4)"
    assert category_label("0000", Category.SMALL_IBOX) == "SML IBOX"


def test_records_follow_ledger_then_category_order():
    ledger = BidLedger()
    process_chunk("5678-0-0-0-0-1\n1234-1-1-1-1-1", ledger)
    records, total = serialize(ledger)
    assert [(r.number, r.type) for r in records] == [
        ("5678", "STRAIGHT (4A)"),
        ("1234", "BIG"),
        ("1234", "SML"),
        ("1234", "BIG IBOX(24)"),
        ("1234", "SML IBOX(24)"),
        ("1234", "STRAIGHT (4A)"),
    ]
    assert total == Decimal(6)


def test_payload_uses_receipt_page_keys():
    ledger = BidLedger()
    process_chunk("1234-5\n8888", ledger)
    payload = build_payload(ledger)
    assert set(payload) == {BIDS_KEY, TOTAL_KEY}
    assert BIDS_KEY == "daheng4dBids"
    assert TOTAL_KEY == "daheng4dTotal"
    assert payload[BIDS_KEY] == '[{"number":"1234","type":"BIG","amount":"5.00"}]'
    assert json.loads(payload[BIDS_KEY]) == [{"number": "1234", "type": "BIG", "amount": "5.00"}]
    assert payload[TOTAL_KEY] == "5.00"


def test_empty_slip_payload():
    payload = build_payload(BidLedger())
    assert payload == {BIDS_KEY: "[]", TOTAL_KEY: "0.00"}


def test_submit_writes_store_then_navigates():
    ledger = BidLedger()
    process_chunk("R234-1", ledger)
    store = {"unrelated": "kept"}
    seen = []

    def navigate(path):
        seen.append((path, dict(store)))

    payload = submit(ledger, store, navigate)
    assert BET_SLIP_PATH == "official-bet-slip/index.html"
    assert seen == [(BET_SLIP_PATH, store)]
    assert store[TOTAL_KEY] == "10.00"
    assert store["unrelated"] == "kept"
    assert len(json.loads(store[BIDS_KEY])) == 10
    assert payload == {BIDS_KEY: store[BIDS_KEY], TOTAL_KEY: store[TOTAL_KEY]}
