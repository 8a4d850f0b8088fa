from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from ..models.cost_record import SectionFamily, SectionTag
from .cells import cell_text, extract_numeric, is_error_marker, row_text

"""Column role inference.

Cost sheets do not agree on column order. Each section family has a
positional default; when a header-like row shows up, the roles it names
override the default for that section only. Roles the header does not name
keep their default index.
"""

__all__ = [
    "HEADER_KEYWORDS",
    "DEFAULT_ROLES",
    "is_header_like",
    "infer_roles",
    "ColumnRoleCache",
]

ColumnRoleMap = dict[str, int]

HEADER_KEYWORDS = (
    "consumption",
    "material price",
    "material cost",
    "operation",
    "smv",
    "factory notes",
    "cost",
)

DEFAULT_ROLES: dict[SectionFamily, ColumnRoleMap] = {
    SectionFamily.MATERIAL: {"name": 0, "consumption": 1, "price": 2, "cost": 3},
    SectionFamily.OPERATION: {"name": 0, "time": 1, "cost_per_minute": 2, "total": 3},
    SectionFamily.CHARGE: {"name": 0, "notes": 1, "cost": 3},
}

_TIME_OR_COST = ("time", "smv", "cost", "usd", "min", "rate", "total")


def _has(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


def _operation_name(text: str) -> bool:
    if "operation" in text:
        return not any(w in text for w in _TIME_OR_COST)
    return "description" in text or "machine" in text


# Rules run in order; a more specific keyword for a role is listed before the
# generic one so that e.g. "Material Cost" wins over a plain "Cost" column.
_RULES: dict[SectionFamily, tuple[tuple[str, Callable[[str], bool]], ...]] = {
    SectionFamily.MATERIAL: (
        ("consumption", _has("consumption")),
        ("price", _has("material price")),
        ("cost", _has("material cost")),
        ("notes", _has("notes")),
        ("name", _has("name", "description", "code")),
        ("price", _has("price")),
        ("cost", _has("cost")),
    ),
    SectionFamily.OPERATION: (
        ("cost_per_minute", _has("usd/min", "cost/min", "per min", "cpm", "sah", "rate")),
        ("total", _has("operation cost")),
        ("time", _has("time", "smv")),
        ("name", _operation_name),
        ("total", _has("total")),
        ("total", _has("cost")),
    ),
    SectionFamily.CHARGE: (
        ("notes", _has("notes")),
        ("name", _has("type", "description", "item")),
        ("cost", _has("cost")),
    ),
}


def is_header_like(row: Sequence[Any]) -> bool:
    """A row naming columns: carries a header keyword and no numeric cell.

    Error tokens (#REF! ...) only come from formulas, so a row holding one is data.
    """
    text = row_text(row).lower()
    if not text or not any(k in text for k in HEADER_KEYWORDS):
        return False
    return all(extract_numeric(c) is None and not is_error_marker(c) for c in row)


def infer_roles(family: SectionFamily, row: Sequence[Any]) -> ColumnRoleMap:
    """Roles detected in ``row``; only roles actually found are returned."""
    rules = _RULES.get(family)
    if not rules:
        return {}
    texts = [cell_text(c).lower() for c in row]
    detected: ColumnRoleMap = {}
    claimed: set[int] = set()
    for role, predicate in rules:
        if role in detected:
            continue
        for idx, text in enumerate(texts):
            if idx in claimed or not text:
                continue
            if predicate(text):
                detected[role] = idx
                claimed.add(idx)
                break
    return detected


class ColumnRoleCache:
    """Per-sheet role maps keyed by SectionTag."""

    def __init__(self) -> None:
        self._inferred: dict[SectionTag, ColumnRoleMap] = {}

    def roles_for(self, tag: SectionTag) -> ColumnRoleMap:
        roles = dict(DEFAULT_ROLES.get(tag.family, {}))
        roles.update(self._inferred.get(tag, {}))
        return roles

    def learn(self, tag: SectionTag, row: Sequence[Any]) -> ColumnRoleMap:
        # 同じタグで再度ヘッダ行が来たら作り直し
        self._inferred[tag] = infer_roles(tag.family, row)
        return self.roles_for(tag)

    def has_inferred(self, tag: SectionTag) -> bool:
        return tag in self._inferred
