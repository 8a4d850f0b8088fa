from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from ..models.cost_record import SectionTag
from .cells import (
    extract_numeric,
    first_non_blank,
    last_numeric,
    normalize_to_decimal_string,
    row_text,
)
from .columns import is_header_like
from .sections import (
    is_header_field_label,
    is_reserved_label,
    is_sentinel,
    is_total_keyword,
    normalize_label,
    section_for_label,
)

"""Totals and notes.

Totals come from the sheet's own ``TOTAL MATERIAL ...`` / ``TOTAL FACTORY
...`` rows when present, otherwise they are summed from the extracted
sections. Notes come from an explicit NOTES block, else from a keyword scan.
"""

__all__ = [
    "NOTE_KEYWORDS",
    "extract_totals",
    "sum_costs",
    "computed_totals",
    "extract_notes_block",
    "extract_keyword_notes",
]

NOTE_KEYWORDS = (
    "surcharge",
    "suggest",
    "recommend",
    "moq",
    "minimum",
    "fabric",
    "color",
    "visor",
    "sweatband",
)


def extract_totals(grid: Iterable[Sequence[Any]]) -> tuple[str | None, str | None]:
    """(total_material_cost, total_factory_cost) as printed on the sheet.

    Scanning stops at the TOTAL FACTORY COST row so footer tables below it
    cannot overwrite the figure.
    """
    material = factory = None
    for row in grid:
        hit = first_non_blank(row)
        if hit is None:
            continue
        label = normalize_label(hit[1])
        if "TOTAL MATERIAL" in label:
            value = last_numeric(row, hit[0] + 1)
            if value is not None:
                material = normalize_to_decimal_string(value)
        elif "TOTAL FACTORY" in label:
            value = last_numeric(row, hit[0] + 1)
            if value is not None:
                factory = normalize_to_decimal_string(value)
        if is_sentinel(label):
            break
    return material, factory


def sum_costs(values: Iterable[str]) -> Decimal:
    total = Decimal(0)
    for v in values:
        total += Decimal(v)
    return total


def computed_totals(sections: dict[SectionTag, Sequence[Any]]) -> tuple[str, str]:
    """Material and factory totals summed from extracted line items."""
    material = sum_costs(
        item.cost
        for tag in (SectionTag.FABRIC, SectionTag.OTHER_FABRIC_TRIM, SectionTag.TRIM, SectionTag.YARN)
        for item in sections.get(tag, ())
    )
    labor = sum_costs(
        item.total
        for tag in (SectionTag.OPERATIONS, SectionTag.KNITTING)
        for item in sections.get(tag, ())
    )
    charges = sum_costs(
        item.cost
        for tag in (SectionTag.PACKAGING, SectionTag.OVERHEAD)
        for item in sections.get(tag, ())
    )
    return (
        normalize_to_decimal_string(str(material)),
        normalize_to_decimal_string(str(material + labor + charges)),
    )


def _ends_notes(label: str) -> bool:
    return section_for_label(label) is not None or is_total_keyword(label)


def extract_notes_block(grid: Sequence[Sequence[Any]]) -> str | None:
    """Rows following an explicit NOTES header, anywhere in the sheet."""
    lines: list[str] = []
    collecting = False
    for row in grid:
        hit = first_non_blank(row)
        if hit is None:
            continue
        label = hit[1]
        if section_for_label(label) is SectionTag.NOTES:
            collecting = True
            continue
        if not collecting:
            continue
        if _ends_notes(label):
            collecting = False
            continue
        lines.append(row_text(row))
    return "\n".join(lines) if lines else None


def extract_keyword_notes(grid: Sequence[Sequence[Any]]) -> str | None:
    """Free-text rows mentioning note-like keywords."""
    lines: list[str] = []
    for row in grid:
        hit = first_non_blank(row)
        if hit is None:
            continue
        label = hit[1]
        if is_reserved_label(label) or is_header_field_label(label) or is_sentinel(label):
            continue
        if any(extract_numeric(c) is not None for c in row):
            continue
        if is_header_like(row):
            continue
        text = row_text(row)
        lowered = text.lower()
        if any(k in lowered for k in NOTE_KEYWORDS):
            lines.append(text)
    return "\n".join(lines) if lines else None
