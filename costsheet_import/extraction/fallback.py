from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.cost_record import OperationLineItem, SectionFamily
from .cells import first_non_blank
from .columns import DEFAULT_ROLES, is_header_like
from .rows import (
    append_unique_operation,
    build_operation_item,
    classify_operation_row,
)
from .sections import (
    is_header_field_label,
    is_sentinel,
    is_total_keyword,
    section_for_label,
)

"""Operations scanner for rows outside any recognized section.

Header-less sheets sometimes put labor lines above the first section label.
Only rows that cannot be anything else are considered here.
"""

__all__ = ["is_fallback_candidate", "scan_unsectioned_row"]


def is_fallback_candidate(row: Sequence[Any]) -> bool:
    hit = first_non_blank(row)
    if hit is None:
        return False
    label = hit[1]
    if section_for_label(label) is not None:
        return False
    if is_sentinel(label) or is_total_keyword(label):
        return False
    if is_header_field_label(label):
        return False
    return not is_header_like(row)


def scan_unsectioned_row(row: Sequence[Any], operations: list[OperationLineItem]) -> bool:
    """Append an operation item built from ``row`` when it has an operation shape.

    Returns True when a new item was appended.
    """
    if not is_fallback_candidate(row):
        return False
    shape = classify_operation_row(row, DEFAULT_ROLES[SectionFamily.OPERATION])
    return append_unique_operation(operations, build_operation_item(shape))
