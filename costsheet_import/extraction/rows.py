from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..models.cost_record import CostLineItem, OperationLineItem, SectionTag
from .cells import (
    cell_text,
    extract_numeric,
    format_computed_value,
    is_error_marker,
    normalize_to_decimal_string,
    starts_with_currency,
)
from .sections import is_reserved_label, section_for_label

"""Row classifiers.

Each classifier turns one data row into at most one line item. A row whose
cost-bearing cell does not parse is dropped, never stored as a zero-cost
placeholder.

Operation rows come in several physical shapes. ``classify_operation_row``
decides the shape once and returns one of the dataclasses below;
``build_operation_item`` then converts the shape into an item.
"""

__all__ = [
    "TripleNumericRow",
    "SummaryRow",
    "LabeledOperationRow",
    "UnusableRow",
    "classify_material_row",
    "classify_charge_row",
    "classify_operation_row",
    "build_operation_item",
    "append_unique_operation",
]


def _cell(row: Sequence[Any], idx: int | None) -> Any:
    if idx is None or idx < 0 or idx >= len(row):
        return None
    return row[idx]


def usable_label(text: str, own_section: SectionTag | None = None) -> bool:
    """Item label test: not blank, not a number, not money, not a keyword.

    The label of ``own_section`` itself is allowed: an OVERHEAD line inside
    the OVERHEAD/PROFIT block is an item.
    """
    if not text:
        return False
    if extract_numeric(text) is not None or is_error_marker(text):
        return False
    if starts_with_currency(text):
        return False
    if own_section is not None and section_for_label(text) is own_section:
        return True
    return not is_reserved_label(text)


def classify_material_row(
    row: Sequence[Any],
    roles: dict[str, int],
    tag: SectionTag | None = None,
) -> CostLineItem | None:
    label = cell_text(_cell(row, roles.get("name")))
    if not usable_label(label, tag):
        return None
    cost = extract_numeric(_cell(row, roles.get("cost")))
    if cost is None:
        return None
    return CostLineItem(
        label=label,
        cost=normalize_to_decimal_string(cost),
        consumption=normalize_to_decimal_string(_cell(row, roles.get("consumption"))),
        price=normalize_to_decimal_string(_cell(row, roles.get("price"))),
        notes=cell_text(_cell(row, roles.get("notes"))),
    )


def classify_charge_row(
    row: Sequence[Any],
    roles: dict[str, int],
    tag: SectionTag | None = None,
) -> CostLineItem | None:
    """Packaging / overhead line: label, optional notes, cost."""
    label = cell_text(_cell(row, roles.get("name")))
    if not usable_label(label, tag):
        return None
    cost = extract_numeric(_cell(row, roles.get("cost")))
    if cost is None:
        return None
    notes_idx = roles.get("notes")
    notes = "" if notes_idx == roles.get("cost") else cell_text(_cell(row, notes_idx))
    if is_error_marker(notes):
        notes = ""
    return CostLineItem(label=label, cost=normalize_to_decimal_string(cost), notes=notes)


@dataclass(frozen=True)
class TripleNumericRow:
    """Columns 1-3 are all numeric: time, cost per minute, total."""
    label: str
    time: float
    cost_per_minute: float
    total: float


@dataclass(frozen=True)
class SummaryRow:
    """Blank-label row under an OPERATIONS header that carried the time.

    The leading numeric cell is the cost per minute.
    """
    cost_per_minute: float | None
    total: float


@dataclass(frozen=True)
class LabeledOperationRow:
    label: str
    time: float | None
    cost_per_minute: float | None
    total: float | None


@dataclass(frozen=True)
class UnusableRow:
    reason: str


OperationRowShape = TripleNumericRow | SummaryRow | LabeledOperationRow | UnusableRow


def classify_operation_row(
    row: Sequence[Any],
    roles: dict[str, int],
    pending_time: float | None = None,
) -> OperationRowShape:
    """Decide which operation row shape ``row`` has."""
    label = cell_text(_cell(row, roles.get("name")))
    if label and not usable_label(label) and extract_numeric(label) is None:
        return UnusableRow("reserved label")

    triple = [extract_numeric(_cell(row, i)) for i in (1, 2, 3)]
    if all(v is not None for v in triple):
        return TripleNumericRow(
            label=label if usable_label(label) else "",
            time=triple[0],
            cost_per_minute=triple[1],
            total=triple[2],
        )

    total_cell = _cell(row, roles.get("total"))
    if is_error_marker(total_cell):
        return UnusableRow("error marker in total")
    total = extract_numeric(total_cell)
    if pending_time is not None and not usable_label(label) and total is not None:
        leading = None
        for idx, c in enumerate(row):
            if idx == roles.get("total"):
                continue
            leading = extract_numeric(c)
            if leading is not None:
                break
        return SummaryRow(cost_per_minute=leading, total=total)

    if not usable_label(label):
        return UnusableRow("no label")
    time = extract_numeric(_cell(row, roles.get("time")))
    cpm = extract_numeric(_cell(row, roles.get("cost_per_minute")))
    if total is None and (time is None or cpm is None):
        return UnusableRow("no total and no time/rate pair")
    return LabeledOperationRow(label=label, time=time, cost_per_minute=cpm, total=total)


def _total_or_computed(total: float | None, time: float | None, cpm: float | None) -> str | None:
    if total is not None:
        return normalize_to_decimal_string(total)
    if time is not None and cpm is not None:
        return format_computed_value(time * cpm)
    return None


def build_operation_item(
    shape: OperationRowShape,
    pending_time: float | None = None,
) -> OperationLineItem | None:
    if isinstance(shape, UnusableRow):
        return None
    if isinstance(shape, TripleNumericRow):
        label, time, cpm, total = shape.label, shape.time, shape.cost_per_minute, shape.total
    elif isinstance(shape, SummaryRow):
        label, time, cpm, total = "", pending_time, shape.cost_per_minute, shape.total
    else:
        label, time, cpm, total = shape.label, shape.time, shape.cost_per_minute, shape.total
    total_text = _total_or_computed(total, time, cpm)
    if total_text is None:
        return None
    return OperationLineItem(
        label=label,
        time=normalize_to_decimal_string(time),
        cost_per_minute=normalize_to_decimal_string(cpm),
        total=total_text,
    )


def append_unique_operation(items: list[OperationLineItem], item: OperationLineItem | None) -> bool:
    """Append unless an identical (label, time, rate, total) item exists."""
    if item is None:
        return False
    if any(existing.identity() == item.identity() for existing in items):
        return False
    items.append(item)
    return True
