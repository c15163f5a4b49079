# fava_bridge/logic.py
import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional, Set

from bs4.element import Tag

from .errors import MarkupParseError
from .extract import cell_text, make_soup
from .schema import Transaction

# -------- Where things live in a Fava account journal --------

@dataclass(frozen=True)
class LedgerSelectors:
    """
    How to find the pieces of one journal line.

    The running balance has no class of its own in Fava's markup, so it is
    picked by its position relative to the change cell: ``balance_offset``
    of 1 is the next element sibling, -1 the previous one.
    """
    line: str = "ol.journal li.transaction"
    date: str = ".datecell"
    change: str = ".change"
    balance_offset: int = 1
    currency: str = "CNY"

    def with_currency(self, currency: str) -> "LedgerSelectors":
        return replace(self, currency=currency)

DEFAULT_SELECTORS = LedgerSelectors()

def sibling_at(el: Tag, offset: int) -> Optional[Tag]:
    if offset == 0:
        return el
    sibs = el.find_next_siblings() if offset > 0 else el.find_previous_siblings()
    idx = abs(offset) - 1
    return sibs[idx] if idx < len(sibs) else None

# -------- Amounts --------

def parse_amount(text: str, currency: str) -> float:
    raw = text.replace(currency, "").strip() if currency else text.strip()
    try:
        value = float(raw)
    except ValueError:
        raise MarkupParseError(f"Failed to parse amount: {text!r}")
    if not math.isfinite(value):
        raise MarkupParseError(f"Failed to parse amount: {text!r}")
    return value

def format_amount(value: float) -> str:
    """Shortest text for the float, without exponent or trailing zeros."""
    if value == 0:
        return "0"
    s = format(Decimal(repr(value)), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s

# -------- Journal lines --------

def _required(el: Optional[Tag], what: str, line_no: int) -> Tag:
    if el is None:
        raise MarkupParseError(f"Journal line {line_no} has no {what} cell")
    return el

def parse_line(line: Tag, line_no: int, selectors: LedgerSelectors):
    date_el = _required(line.select_one(selectors.date), "date", line_no)
    change_el = _required(line.select_one(selectors.change), "change", line_no)
    balance_el = _required(sibling_at(change_el, selectors.balance_offset), "balance", line_no)
    return (
        cell_text(date_el),
        parse_amount(cell_text(change_el), selectors.currency),
        parse_amount(cell_text(balance_el), selectors.currency),
    )

def normalize_ledger(rows, negate: bool = False) -> List[Transaction]:
    """
    Takes ``(date, changed, balance)`` tuples in page order and returns the
    ledger: first row per date kept, signs flipped when ``negate`` is set,
    order reversed.

    Fava can print several lines for one date; only the first one survives.
    That also drops a real second transaction on the same day.
    """
    sign = -1 if negate else 1
    seen: Set[str] = set()
    out: List[Transaction] = []
    for date, changed, balance in rows:
        if date in seen:
            continue
        seen.add(date)
        out.append(Transaction(
            date=date,
            changed=format_amount(changed * sign),
            balance=format_amount(balance * sign),
        ))
    out.reverse()
    return out

def extract_ledger(html: str, negate: bool = False, selectors: LedgerSelectors = DEFAULT_SELECTORS) -> List[Transaction]:
    soup = make_soup(html or "")
    rows = [
        parse_line(line, i, selectors)
        for i, line in enumerate(soup.select(selectors.line), start=1)
    ]
    return normalize_ledger(rows, negate=negate)
