from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from .cells import cell_text, is_blank, is_error_marker
from .sections import is_sentinel, row_label

"""Style header fields (customer, season, style number ...).

Sheets put the label in one cell and the value in the next non-blank cell to
the right. ``Customer: ACME`` written into a single cell also works.
"""

__all__ = ["HEADER_FIELDS", "extract_header_fields"]

_SEP = r"\s*(?:[:：]\s*|$)"

HEADER_FIELDS: dict[str, re.Pattern[str]] = {
    "customer": re.compile(rf"^customer(?:\s*name)?{_SEP}", re.I),
    "season": re.compile(rf"^season{_SEP}", re.I),
    "style_number": re.compile(rf"^style\s*(?:#|no\.?|number){_SEP}", re.I),
    "style_name": re.compile(rf"^style\s*name{_SEP}", re.I),
    "costed_quantity": re.compile(rf"^(?:costed\s+quantity|quantity|moq){_SEP}", re.I),
    "leadtime": re.compile(rf"^lead\s*-?\s*time{_SEP}", re.I),
}


def _match_field(text: str) -> tuple[str, str] | None:
    """(field, inline value) for a label cell, inline value may be ''."""
    for field, pattern in HEADER_FIELDS.items():
        m = pattern.match(text)
        if m:
            return field, text[m.end():].strip()
    return None


def _value_right_of(row: Sequence[Any], idx: int) -> str:
    for cell in row[idx + 1:]:
        if is_blank(cell) or is_error_marker(cell):
            continue
        text = cell_text(cell)
        if _match_field(text) is None:
            return text
        return ""
    return ""


def extract_header_fields(grid: Sequence[Sequence[Any]]) -> dict[str, str]:
    """First value found for every header field; missing fields are ''."""
    found = {field: "" for field in HEADER_FIELDS}
    for row in grid:
        if row and is_sentinel(row_label(row)):
            break
        for idx, cell in enumerate(row or ()):
            text = cell_text(cell)
            if not text:
                continue
            hit = _match_field(text)
            if hit is None:
                continue
            field, inline = hit
            if found[field]:
                continue
            found[field] = inline or _value_right_of(row, idx)
    return found
