# tests/test_line_parser.py
import pytest

from bid_engine import (
    AmountVector,
    LineIntent,
    MalformedTokenError,
    ZERO,
    parse_line,
)


def test_bare_token():
    p = parse_line("1234")
    assert p.token == "1234"
    assert p.intent is LineIntent.BARE
    assert p.amounts == ZERO
    assert p.numbers() == ["1234"]


def test_partial_amounts_fill_from_the_left():
    p = parse_line("1234-5")
    assert p.intent is LineIntent.POSITIVE
    assert p.amounts == AmountVector(big=5)

    p = parse_line("1234-5-0-0-0-2")
    assert p.amounts == AmountVector(big=5, straight=2)


def test_empty_and_junk_segments_are_zero():
    p = parse_line("1123--3")
    assert p.amounts == AmountVector(small=3)

    p = parse_line("1123-abc-1.5-4")
    assert p.amounts == AmountVector(big_ibox=4)


def test_whitespace_around_segments():
    p = parse_line("  5678 - 1 - 2  ")
    assert p.token == "5678"
    assert p.amounts == AmountVector(big=1, small=2)


def test_explicit_zero_line():
    p = parse_line("1234-0-0-0-0-0")
    assert p.intent is LineIntent.ZERO
    assert p.amounts_to_apply() == ZERO


def test_extra_segments_ignored():
    p = parse_line("1234-1-1-1-1-1-9-9")
    assert p.amounts == AmountVector(1, 1, 1, 1, 1)


def test_roll_line():
    p = parse_line("x234-2")
    assert p.is_roll
    assert p.token == "R234"
    assert p.numbers() == [f"{d}234" for d in range(10)]
    assert p.amounts_to_apply() == AmountVector(big=2)


def test_malformed_tokens():
    for raw in ("12R3R", "12AB", "123-5", "12345-1", "-5", "RR12-1"):
        with pytest.raises(MalformedTokenError):
            parse_line(raw)
