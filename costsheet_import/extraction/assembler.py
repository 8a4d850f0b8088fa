from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.cost_record import ITEM_SECTIONS, Category, CostRecord
from .cells import row_text
from .header_fields import extract_header_fields
from .segmenter import segment
from .totals import (
    computed_totals,
    extract_keyword_notes,
    extract_notes_block,
    extract_totals,
)

"""Cost record assembly: grid in, immutable CostRecord out."""

__all__ = [
    "EmptyGridError",
    "detect_category",
    "extract_cost_record",
]

logger = logging.getLogger(__name__)


class EmptyGridError(ValueError):
    """Raised when a grid has no non-blank cell to classify."""


def _rows(grid: Sequence[Sequence[Any]] | None) -> list[list[Any]]:
    if grid is None:
        raise EmptyGridError("grid is absent")
    rows = [list(r) if r is not None else [] for r in grid]
    if not any(row_text(r) for r in rows):
        raise EmptyGridError("grid has no data")
    return rows


def detect_category(grid: Sequence[Sequence[Any]]) -> Category:
    """Beanie when the sheet talks about yarn and knitting, ball caps otherwise."""
    text = "\n".join(row_text(r) for r in grid if r is not None).lower()
    if "yarn" in text and "knitting" in text:
        return Category.BEANIE
    return Category.BALLCAPS


def _as_category(value: Category | str | None) -> Category | None:
    if value is None or isinstance(value, Category):
        return value
    if value == "auto":
        return None
    return Category(value)


def extract_cost_record(
    grid: Sequence[Sequence[Any]] | None,
    category: Category | str | None = None,
    source_name: str | None = None,
) -> CostRecord:
    """Extract one cost breakdown sheet.

    Parameters:
        grid: rows of untyped cells
        category: forces the garment category; detected from the text when None or 'auto'
        source_name: carried on the record for logging only

    Raises:
        EmptyGridError: grid is None or holds no non-blank cell
    """
    rows = _rows(grid)
    resolved = _as_category(category) or detect_category(rows)
    seg = segment(rows, resolved)
    header = extract_header_fields(rows)

    material_total, factory_total = extract_totals(rows)
    if seg.total_factory_cost is not None:
        factory_total = seg.total_factory_cost
    computed_material, computed_factory = computed_totals(seg.sections)
    if material_total is None:
        material_total = computed_material
    if factory_total is None:
        factory_total = computed_factory

    notes_lines = [line for line in seg.notes_lines if line]
    notes = "\n".join(notes_lines) if notes_lines else None
    if notes is None:
        notes = extract_notes_block(rows) or extract_keyword_notes(rows)

    sections = {tag.value: tuple(seg.sections[tag]) for tag in ITEM_SECTIONS}
    record = CostRecord(
        category=resolved,
        total_material_cost=material_total,
        total_factory_cost=factory_total,
        notes=notes,
        source_name=source_name,
        **header,
        **sections,
    )
    logger.debug(
        "extracted %s (%s): %s",
        source_name or "<grid>",
        resolved.value,
        record.item_counts(),
    )
    return record
