from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.cost_record import (
    ITEM_SECTIONS,
    Category,
    SectionFamily,
    SectionTag,
)
from .cells import (
    extract_numeric,
    first_non_blank,
    last_numeric,
    normalize_to_decimal_string,
    row_text,
)
from .columns import ColumnRoleCache, is_header_like
from .fallback import scan_unsectioned_row
from .rows import (
    append_unique_operation,
    build_operation_item,
    classify_charge_row,
    classify_material_row,
    classify_operation_row,
)
from .sections import (
    is_sentinel,
    is_total_keyword,
    section_for_label,
)

"""Section segmenter.

One pass over the grid. The first non-blank cell of a row decides whether the
row switches section; every other row is handed to the classifier of the
active section. Processing ends at the TOTAL FACTORY COST row.
"""

__all__ = ["SegmentResult", "segment"]

logger = logging.getLogger(__name__)


@dataclass
class SegmentResult:
    sections: dict[SectionTag, list[Any]] = field(
        default_factory=lambda: {tag: [] for tag in ITEM_SECTIONS}
    )
    notes_lines: list[str] = field(default_factory=list)
    total_factory_cost: str | None = None
    sentinel_row: int | None = None  # 0-based


def segment(grid: Sequence[Sequence[Any]], category: Category | None = None) -> SegmentResult:
    result = SegmentResult()
    roles = ColumnRoleCache()
    tag = SectionTag.NONE
    pending_time: float | None = None

    for idx, raw in enumerate(grid):
        row = list(raw) if raw is not None else []
        hit = first_non_blank(row)
        if hit is None:
            continue
        label_idx, label = hit

        if is_sentinel(label):
            value = last_numeric(row, label_idx + 1)
            if value is not None:
                result.total_factory_cost = normalize_to_decimal_string(value)
            result.sentinel_row = idx
            break

        new_tag = section_for_label(label, category)
        # "OVERHEAD  2.00" inside OVERHEAD/PROFIT is a line item, not a new block
        same_block_item = new_tag is tag and last_numeric(row, label_idx + 1) is not None
        if new_tag is not None and not same_block_item:
            tag = new_tag
            pending_time = None
            if tag is SectionTag.OPERATIONS and label_idx + 1 < len(row):
                pending_time = extract_numeric(row[label_idx + 1])
            if is_header_like(row) and tag.family is not SectionFamily.NOTES:
                roles.learn(tag, row)
            logger.debug("row %d: section %s", idx + 1, tag.value)
            # "OVERHEAD | | | 2.00" with no block header above opens the block and is its first line
            if not (tag.family is SectionFamily.CHARGE and last_numeric(row, label_idx + 1) is not None):
                continue

        if tag is SectionTag.NOTES:
            if is_total_keyword(label):
                tag = SectionTag.NONE
                continue
            result.notes_lines.append(row_text(row))
            continue

        if is_header_like(row):
            if tag is not SectionTag.NONE:
                roles.learn(tag, row)
            continue

        if tag is SectionTag.NONE:
            scan_unsectioned_row(row, result.sections[SectionTag.OPERATIONS])
            continue

        if is_total_keyword(label):
            continue

        active = roles.roles_for(tag)
        items = result.sections[tag]
        family = tag.family
        if family is SectionFamily.MATERIAL:
            item = classify_material_row(row, active, tag)
            if item is not None:
                items.append(item)
        elif family is SectionFamily.OPERATION:
            shape = classify_operation_row(row, active, pending_time)
            append_unique_operation(items, build_operation_item(shape, pending_time))
            # the header time only belongs to the first data row after it
            pending_time = None
        elif family is SectionFamily.CHARGE:
            item = classify_charge_row(row, active, tag)
            if item is not None:
                items.append(item)

    return result
