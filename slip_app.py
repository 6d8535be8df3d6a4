# slip_app.py
# 4D Bid Slip: quick add + chunk entry with R/X rolls + editable slip + submit to the bet slip page
#
# Workflow:
# 1) Quick add one number (padded to 4 digits). A number already on the slip is refused.
# 2) Or paste a chunk, one bet per line: "1234", "1234-5-0-0-0-2", "R234-2".
#    Amount order is big - small - big ibox - small ibox - straight.
#    Rolls expand to 10 numbers; a number that is already on the slip gets the amounts added.
# 3) Edit amounts per row, remove rows (asks first). Total is recomputed from the slip every run.
# 4) Submit: the slip goes into the browser's localStorage and the bet slip page opens.
#
# Requires: streamlit, numpy

from __future__ import annotations
import json
from typing import Dict

import streamlit as st
import streamlit.components.v1 as components

from bid_engine import (
    CATEGORIES,
    LABELS,
    TOTAL_KEY,
    BidEntryError,
    BidLedger,
    Category,
    EmptyBatchError,
    NothingAddedError,
    classify,
    money,
    process_chunk,
    submit,
)

# ---------- Page ----------
st.set_page_config(page_title="4D Bid Slip", layout="wide")
st.title("4D Bid Slip")
st.caption("Quick add or paste a chunk (R/X rolls allowed), fill in BIG / SML / IBOX / STRAIGHT (4A), then submit.")

CURRENCY = "RM"
SAMPLE_NUMBER = "1234"
ROW_WIDTHS = [1.0, 1, 1, 1, 1, 1, 0.7, 0.4]


# ---------- Session ----------
if "ledger" not in st.session_state:
    first = BidLedger()
    first.add_number(SAMPLE_NUMBER)
    st.session_state.ledger = first
    st.session_state.pending_remove = None
    st.session_state.notices = []

ledger: BidLedger = st.session_state.ledger


def amount_key(number: str, cat: Category) -> str:
    return f"amt_{number}_{cat.value}"


def notify(level: str, msg: str) -> None:
    st.session_state.notices.append((level, msg))


def sync_widgets() -> None:
    """Push ledger amounts into the row widgets; the ledger is never read back from them."""
    for number, amounts in st.session_state.ledger.entries():
        for cat in CATEGORIES:
            st.session_state[amount_key(number, cat)] = amounts[cat]


def browser_handoff(storage: Dict[str, str], path: str) -> str:
    lines = [f"window.parent.localStorage.setItem({json.dumps(k)}, {json.dumps(v)});" for k, v in storage.items()]
    lines.append(f"window.parent.location.href = {json.dumps(path)};")
    return "<script>\n" + "\n".join(lines) + "\n</script>"


# ---------- Callbacks ----------
def on_quick_add() -> None:
    try:
        number = st.session_state.ledger.add_number(st.session_state.quick_number)
    except EmptyBatchError as e:
        notify("warning", str(e))
        return
    except BidEntryError as e:
        notify("error", str(e))
        return
    st.session_state.quick_number = ""
    notify("success", f"Added {number}.")


def on_chunk_add() -> None:
    try:
        result = process_chunk(st.session_state.chunk_text, st.session_state.ledger)
    except EmptyBatchError as e:
        notify("warning", str(e))
        return
    except NothingAddedError as e:
        for s in e.skipped:
            notify("warning", f"Line {s.line_no} skipped: {s.reason}")
        notify("error", str(e))
        return
    for s in result.skipped:
        notify("warning", f"Line {s.line_no} skipped: {s.reason}")
    st.session_state.chunk_text = ""
    notify("success", f"Added {result.lines_added} line(s) covering {len(result.numbers)} number(s).")


def on_amount_change(number: str, cat: Category) -> None:
    value = st.session_state[amount_key(number, cat)] or 0
    st.session_state.ledger.set_amount(number, cat, int(value))


def ask_remove(number: str) -> None:
    st.session_state.pending_remove = number


def confirm_remove() -> None:
    number = st.session_state.pending_remove
    st.session_state.pending_remove = None
    if number and st.session_state.ledger.remove(number):
        for cat in CATEGORIES:
            st.session_state.pop(amount_key(number, cat), None)
        notify("info", f"Removed {number}.")


def cancel_remove() -> None:
    st.session_state.pending_remove = None


# ---------- Sidebar: entry ----------
with st.sidebar:
    st.subheader("Quick add")
    st.text_input("4-digit number", key="quick_number", max_chars=4, placeholder="e.g. 1234")
    st.button("Add Number", key="add_number", on_click=on_quick_add)

    st.markdown("---")
    st.subheader("Chunk entry")
    st.text_area(
        "One bet per line: number-big-small-big ibox-small ibox-straight",
        key="chunk_text",
        height=180,
        placeholder="e.g.\n1234-5-0-0-0-2\nR234-2\n1123--3\n8888",
    )
    st.button("Add Lines", key="add_chunk", on_click=on_chunk_add)
    st.caption("R or X marks a roll digit (0-9). Missing amounts count as 0.")

# ---------- Notices ----------
for level, msg in st.session_state.notices:
    getattr(st, level)(msg)
st.session_state.notices = []

# ---------- Remove confirmation ----------
if st.session_state.pending_remove:
    st.warning(f"Are you sure you want to remove number {st.session_state.pending_remove}?")
    yes, no, _ = st.columns([1, 1, 6])
    yes.button("Yes, remove", key="confirm_remove", on_click=confirm_remove)
    no.button("Cancel", key="cancel_remove", on_click=cancel_remove)

# ---------- Slip ----------
sync_widgets()

st.markdown("### Bid Slip")
if not len(ledger):
    st.info("No numbers on the slip yet.")
else:
    head = st.columns(ROW_WIDTHS)
    for col, title in zip(head, ["Number"] + [LABELS[c] for c in CATEGORIES] + ["IBOX", ""]):
        col.markdown(f"**{title}**")

    for number, _ in ledger.entries():
        cols = st.columns(ROW_WIDTHS)
        cols[0].markdown(f"**{number}**")
        for col, cat in zip(cols[1:6], CATEGORIES):
            col.number_input(
                f"{LABELS[cat]} {number}",
                min_value=0,
                step=1,
                key=amount_key(number, cat),
                on_change=on_amount_change,
                args=(number, cat),
                label_visibility="collapsed",
            )
        n = classify(number)
        cols[6].write(f"{n}-way" if n > 1 else "-")
        cols[7].button("✕", key=f"remove_{number}", on_click=ask_remove, args=(number,), help=f"Remove {number}")

st.markdown("---")
st.metric("Total", f"{CURRENCY} {money(ledger.total())}")

if st.button("Submit Bids", key="submit_bids", type="primary"):
    storage: Dict[str, str] = {}

    def navigate(path: str) -> None:
        components.html(browser_handoff(storage, path), height=0)

    payload = submit(ledger, storage, navigate)
    st.success(f"Slip submitted ({CURRENCY} {payload[TOTAL_KEY]}). Opening the bet slip page...")
