"""
Result Formatting

Turns an engine CalculationResult into display strings.

The engine returns raw numbers; whether a number is money or a plain
count is decided here, from the literal column header or card title:

- Table cells: a header containing a money keyword is rendered as
  rupees (₹12,34,567.80); a header equal to Year/Age/Month/Years/Months
  is rendered bare (2031); anything else gets Indian digit grouping.
- Cards: a title containing the word "age" is a grouped plain number;
  every other numeric card is rupees.
- Strings ("TOTAL", "", "0.00", "7.0%") are shown unchanged.

Grouping follows the en-IN convention: the last three digits, then
pairs (12,34,56,789).
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel, Field

from fundportal.models.calculation import CalculationResult, CellValue, ResultTable


# =============================================================================
# HEURISTICS
# =============================================================================

CURRENCY_HEADER_KEYWORDS = (
    "expense",
    "salary",
    "needs",
    "wants",
    "savings",
    "corpus",
    "wealth",
    "investment",
    "withdrawal",
    "amount",
    "emi",
    "premium",
    "rent",
    "bills",
    "fees",
    "maintenance",
    "cash",
    "lumpsum",
    "sip",
)

PLAIN_HEADERS = frozenset({"year", "age", "month", "years", "months"})

PLAIN_CARD_WORDS = frozenset({"age"})

RUPEE = "₹"


def is_currency_header(header: str) -> bool:
    lowered = header.lower()
    return any(keyword in lowered for keyword in CURRENCY_HEADER_KEYWORDS)


def is_plain_header(header: str) -> bool:
    return header.lower() in PLAIN_HEADERS


def is_plain_card(title: str) -> bool:
    return not PLAIN_CARD_WORDS.isdisjoint(re.findall(r"[a-z]+", title.lower()))


# =============================================================================
# NUMBER FORMATTING
# =============================================================================

def _group_indian(digits: str) -> str:
    """Insert en-IN separators into a string of integer digits."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def _non_finite(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    return "-∞" if value < 0 else "∞"


def _split_rounded(value: float, places: int) -> tuple[bool, str, str]:
    """Round half away from zero; return (negative, integer digits, fraction digits)."""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    negative = rounded < 0
    text = f"{abs(rounded):f}"
    if "." in text:
        integer, fraction = text.split(".")
    else:
        integer, fraction = text, ""
    return negative, integer, fraction


def format_inr(value: Union[int, float]) -> str:
    """
    Rupee amount with en-IN grouping and exactly two decimals.

    >>> format_inr(1234567.8)
    '₹12,34,567.80'
    >>> format_inr(-500)
    '-₹500.00'
    """
    if isinstance(value, float) and not math.isfinite(value):
        text = _non_finite(value)
        if text.startswith("-"):
            return f"-{RUPEE}{text[1:]}"
        return f"{RUPEE}{text}"

    negative, integer, fraction = _split_rounded(value, 2)
    sign = "-" if negative else ""
    return f"{sign}{RUPEE}{_group_indian(integer)}.{fraction}"


def format_indian_number(value: Union[int, float], max_fraction_digits: int = 3) -> str:
    """
    Plain number with en-IN grouping and at most three decimals.

    Trailing zeros are dropped: 1234567.5 -> '12,34,567.5'.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return _non_finite(value)

    negative, integer, fraction = _split_rounded(value, max_fraction_digits)
    fraction = fraction.rstrip("0")
    sign = "-" if negative else ""
    grouped = _group_indian(integer)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_bare_number(value: Union[int, float]) -> str:
    """Shortest plain representation: 2031.0 -> '2031', 0.5 -> '0.5'."""
    if not isinstance(value, float):
        return str(value)
    if not math.isfinite(value):
        return _non_finite(value).replace("∞", "Infinity")
    if value.is_integer():
        return str(int(value))
    return repr(value)


# =============================================================================
# CELLS, CARDS, TABLES
# =============================================================================

def _is_number(value: CellValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_cell(header: str, value: CellValue) -> str:
    """Display text for one table cell."""
    if not _is_number(value):
        return str(value)
    if is_currency_header(header):
        return format_inr(value)
    if is_plain_header(header):
        return format_bare_number(value)
    return format_indian_number(value)


def format_card_value(title: str, value: CellValue) -> str:
    """Display text for a summary card value."""
    if not _is_number(value):
        return str(value)
    if is_plain_card(title):
        return format_indian_number(value)
    return format_inr(value)


class FormattedTable(BaseModel):
    headers: list[str]
    rows: list[list[str]] = Field(default_factory=list)


class FormattedResult(BaseModel):
    """A CalculationResult with every value rendered as text."""
    cards: list[tuple[str, str]] = Field(default_factory=list)
    tables: list[FormattedTable] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


def format_table(table: ResultTable) -> FormattedTable:
    """Render rows in header order. Missing cells are blank."""
    rows = [
        [format_cell(header, row.get(header, "")) for header in table.headers]
        for row in table.rows
    ]
    return FormattedTable(headers=list(table.headers), rows=rows)


def format_result(result: CalculationResult) -> FormattedResult:
    return FormattedResult(
        cards=[(card.title, format_card_value(card.title, card.value)) for card in result.cards],
        tables=[format_table(table) for table in result.tables],
        notes=list(result.notes),
    )
