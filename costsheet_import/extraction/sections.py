from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from ..models.cost_record import Category, SectionTag
from .cells import first_non_blank

"""Section labels and keyword tests shared by the segmenter and classifiers."""

__all__ = [
    "SECTION_LABELS",
    "TOTAL_SENTINEL",
    "normalize_label",
    "section_for_label",
    "row_label",
    "is_sentinel",
    "is_total_keyword",
    "is_header_field_label",
    "is_reserved_label",
]

SECTION_LABELS: dict[str, SectionTag] = {
    "FABRIC": SectionTag.FABRIC,
    "FABRIC/S": SectionTag.FABRIC,
    "EMBROIDERY": SectionTag.OTHER_FABRIC_TRIM,
    "OTHER FABRIC/S - TRIM/S": SectionTag.OTHER_FABRIC_TRIM,
    "TRIM": SectionTag.TRIM,
    "TRIM/S": SectionTag.TRIM,
    "YARN": SectionTag.YARN,
    "YARN/S": SectionTag.YARN,
    "MATERIAL": SectionTag.YARN,
    "KNITTING": SectionTag.KNITTING,
    "OPERATIONS": SectionTag.OPERATIONS,
    "PACKAGING": SectionTag.PACKAGING,
    "OVERHEAD/PROFIT": SectionTag.OVERHEAD,
    "OVERHEAD": SectionTag.OVERHEAD,
    "OVERHEAD & PROFIT": SectionTag.OVERHEAD,
    "OH/PROFIT": SectionTag.OVERHEAD,
    "NOTES": SectionTag.NOTES,
    "NOTE": SectionTag.NOTES,
    "NOTES:": SectionTag.NOTES,
    "NOTE:": SectionTag.NOTES,
}

BEANIE_SECTIONS = (SectionTag.YARN, SectionTag.KNITTING)

TOTAL_SENTINEL = "TOTAL FACTORY COST"

_SLASH_RE = re.compile(r"\s*/\s*")
_SPACE_RE = re.compile(r"\s+")
_TOTAL_RE = re.compile(r"\b(?:SUB\s*-?\s*)?TOTALS?\b")
_HEADER_FIELD_RE = re.compile(
    r"^(?:customer|season|style|costed\s+quantity|quantity|moq|lead\s*-?\s*time)",
    re.IGNORECASE,
)

# Column header words that are never an item label on their own
_HEADER_WORDS = frozenset(
    {
        "NAME",
        "DESCRIPTION",
        "CODE",
        "ITEM",
        "TYPE",
        "OPERATION",
        "CONSUMPTION",
        "PRICE",
        "COST",
        "NOTES",
        "FACTORY NOTES",
        "MATERIAL PRICE",
        "MATERIAL COST",
        "OPERATION COST",
        "TIME",
        "SMV",
    }
)


def normalize_label(text: str) -> str:
    text = _SPACE_RE.sub(" ", text.strip().upper())
    return _SLASH_RE.sub("/", text)


def section_for_label(text: str, category: Category | None = None) -> SectionTag | None:
    """Section named by ``text``. YARN and KNITTING blocks exist on beanie sheets only."""
    if not text:
        return None
    tag = SECTION_LABELS.get(normalize_label(text))
    if category is Category.BALLCAPS and tag in BEANIE_SECTIONS:
        return None
    return tag


def row_label(row: Sequence[Any]) -> str:
    """Normalized label of a row (first non-blank cell), "" for an empty row."""
    hit = first_non_blank(row)
    return normalize_label(hit[1]) if hit else ""


def is_sentinel(label: str) -> bool:
    return normalize_label(label).rstrip(":").strip() == TOTAL_SENTINEL


def is_total_keyword(label: str) -> bool:
    return bool(_TOTAL_RE.search(normalize_label(label)))


def is_header_field_label(label: str) -> bool:
    return bool(_HEADER_FIELD_RE.match(label.strip()))


def is_reserved_label(label: str) -> bool:
    """Text that names a section, a total or a column, never a line item."""
    norm = normalize_label(label)
    if not norm:
        return False
    return (
        norm in SECTION_LABELS
        or norm.rstrip(":") in _HEADER_WORDS
        or is_total_keyword(norm)
    )
