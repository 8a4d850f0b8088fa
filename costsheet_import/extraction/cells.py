from __future__ import annotations

import math
import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Real
from typing import Any

"""Cell normalization helpers.

Every value read from a cost sheet goes through this module before it is
interpreted. Cells arrive untyped (str / int / float / bool / None / NaN from
pandas); the helpers below coerce them into finite floats, canonical decimal
strings, or trimmed text. None of them raise for a bad cell: callers get
``None`` (or the supplied fallback) and decide whether to drop the row.
"""

__all__ = [
    "ERROR_TOKENS",
    "is_blank",
    "is_error_marker",
    "cell_text",
    "row_text",
    "first_non_blank",
    "extract_numeric",
    "last_numeric",
    "normalize_to_decimal_string",
    "format_computed_value",
    "starts_with_currency",
]

ERROR_TOKENS = frozenset(
    {
        "#REF!",
        "#VALUE!",
        "#DIV/0!",
        "#N/A",
        "#NULL!",
        "#NUM!",
        "#NAME?",
        "#SPILL!",
        "#CALC!",
    }
)

CURRENCY_SYMBOLS = "$€£¥₱₹"

_STRIP_RE = re.compile(rf"[{re.escape(CURRENCY_SYMBOLS)},\s]")
_NUMBER_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")

DECIMAL_PLACES = 4


def is_blank(cell: Any) -> bool:
    if cell is None:
        return True
    if isinstance(cell, float) and math.isnan(cell):
        return True
    if isinstance(cell, str) and cell.strip() == "":
        return True
    return False


def is_error_marker(cell: Any) -> bool:
    """True when the cell holds a spreadsheet error token such as ``#REF!``."""
    if not isinstance(cell, str):
        return False
    text = cell.strip().upper()
    return text.startswith("#") and text in ERROR_TOKENS


def cell_text(cell: Any) -> str:
    """Trimmed text form of a cell ("" for blanks). Integral floats lose the ``.0``."""
    if is_blank(cell):
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell).strip()


def row_text(row: Sequence[Any], sep: str = " ") -> str:
    return sep.join(t for t in (cell_text(c) for c in row) if t)


def first_non_blank(row: Sequence[Any]) -> tuple[int, str] | None:
    """Index and text of the first non-blank cell, or None for an empty row."""
    for idx, cell in enumerate(row):
        if not is_blank(cell):
            return idx, cell_text(cell)
    return None


def starts_with_currency(text: str) -> bool:
    return bool(text) and text[0] in CURRENCY_SYMBOLS


def extract_numeric(cell: Any) -> float | None:
    """Coerce a cell into a finite float.

    Strings may carry currency symbols, thousands separators, surrounding
    whitespace and accounting-style parentheses for negatives. Booleans,
    error markers and anything non-finite give ``None``.
    """
    if cell is None or isinstance(cell, bool):
        return None
    if isinstance(cell, Real):
        value = float(cell)
        return value if math.isfinite(value) else None
    if isinstance(cell, Decimal):
        return extract_numeric(float(cell)) if cell.is_finite() else None
    if not isinstance(cell, str):
        return None
    if is_error_marker(cell):
        return None
    text = _STRIP_RE.sub("", cell)
    negative = False
    if len(text) > 2 and text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    if not _NUMBER_RE.match(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return -value if negative else value


def last_numeric(row: Sequence[Any], start: int = 0) -> float | None:
    """Right-most numeric cell of ``row`` at or after ``start``."""
    for cell in reversed(row[start:]):
        value = extract_numeric(cell)
        if value is not None:
            return value
    return None


def _format_decimal(value: float) -> str:
    try:
        quantum = Decimal(1).scaleb(-DECIMAL_PLACES)
        rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return "0.00"
    text = format(rounded, "f")
    if "." in text:
        whole, frac = text.split(".", 1)
        frac = frac.rstrip("0").ljust(2, "0")
        text = f"{whole}.{frac}"
    else:
        text = f"{text}.00"
    if text.startswith("-") and Decimal(text) == 0:
        text = text[1:]
    return text


def normalize_to_decimal_string(value: Any, fallback: str = "0.00") -> str:
    """Canonical decimal string for a cell or number; ``fallback`` when unparsable.

    Rounds half-up to four places, trims trailing zeros and keeps at least two
    decimals, so ``"1.50"`` maps to itself.
    """
    number = extract_numeric(value)
    if number is None:
        return fallback
    return _format_decimal(number)


def format_computed_value(number: float | None) -> str:
    """Format a derived figure such as ``time * cost_per_minute``."""
    if number is None or not math.isfinite(number) or number == 0:
        return "0.00"
    return _format_decimal(number)
