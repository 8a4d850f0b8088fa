from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

"""Cost record domain models.

A CostRecord is the normalized result of extracting one cost breakdown sheet.
It is built once per extraction call, never mutated afterwards, and handed to
the reconciliation step exactly once.
"""

__all__ = [
    "Category",
    "SectionTag",
    "SectionFamily",
    "CostLineItem",
    "OperationLineItem",
    "CostRecord",
]


class Category(Enum):
    """Garment category of a cost sheet."""
    BALLCAPS = "ballcaps"
    BEANIE = "beanie"


class SectionFamily(Enum):
    MATERIAL = "material"
    OPERATION = "operation"
    CHARGE = "charge"  # packaging / overhead: label, notes, cost
    NOTES = "notes"
    NONE = "none"


class SectionTag(Enum):
    """Block of a cost sheet the segmenter is currently inside.

    Exactly one tag is active at a time. ``YARN`` and ``KNITTING`` only show
    up on beanie sheets.
    """
    FABRIC = "fabric"
    OTHER_FABRIC_TRIM = "other_fabric_trim"
    TRIM = "trim"
    YARN = "yarn"
    KNITTING = "knitting"
    OPERATIONS = "operations"
    PACKAGING = "packaging"
    OVERHEAD = "overhead"
    NOTES = "notes"
    NONE = "none"

    @property
    def family(self) -> SectionFamily:
        return _FAMILIES[self]


_FAMILIES = {
    SectionTag.FABRIC: SectionFamily.MATERIAL,
    SectionTag.OTHER_FABRIC_TRIM: SectionFamily.MATERIAL,
    SectionTag.TRIM: SectionFamily.MATERIAL,
    SectionTag.YARN: SectionFamily.MATERIAL,
    SectionTag.KNITTING: SectionFamily.OPERATION,
    SectionTag.OPERATIONS: SectionFamily.OPERATION,
    SectionTag.PACKAGING: SectionFamily.CHARGE,
    SectionTag.OVERHEAD: SectionFamily.CHARGE,
    SectionTag.NOTES: SectionFamily.NOTES,
    SectionTag.NONE: SectionFamily.NONE,
}

# Sections that sum into the material total
MATERIAL_SECTIONS = (
    SectionTag.FABRIC,
    SectionTag.OTHER_FABRIC_TRIM,
    SectionTag.TRIM,
    SectionTag.YARN,
)

ITEM_SECTIONS = (
    SectionTag.FABRIC,
    SectionTag.OTHER_FABRIC_TRIM,
    SectionTag.TRIM,
    SectionTag.YARN,
    SectionTag.KNITTING,
    SectionTag.OPERATIONS,
    SectionTag.PACKAGING,
    SectionTag.OVERHEAD,
)


@dataclass(frozen=True)
class CostLineItem:
    """Material-like or charge (packaging / overhead) line.

    ``consumption`` and ``price`` are None for charge lines.
    """
    label: str
    cost: str
    consumption: str | None = None
    price: str | None = None
    notes: str = ""


@dataclass(frozen=True)
class OperationLineItem:
    """Labor line (operations or knitting)."""
    label: str
    time: str
    cost_per_minute: str
    total: str

    def identity(self) -> tuple[str, str, str, str]:
        return (self.label, self.time, self.cost_per_minute, self.total)


LineItem = CostLineItem | OperationLineItem


@dataclass(frozen=True)
class CostRecord:
    """Normalized cost breakdown for one style.

    Section fields are tuples in sheet order. Totals are decimal strings.
    """
    category: Category
    customer: str = ""
    season: str = ""
    style_number: str = ""
    style_name: str = ""
    costed_quantity: str = ""
    leadtime: str = ""
    fabric: tuple[CostLineItem, ...] = ()
    other_fabric_trim: tuple[CostLineItem, ...] = ()
    trim: tuple[CostLineItem, ...] = ()
    yarn: tuple[CostLineItem, ...] = ()
    knitting: tuple[OperationLineItem, ...] = ()
    operations: tuple[OperationLineItem, ...] = ()
    packaging: tuple[CostLineItem, ...] = ()
    overhead: tuple[CostLineItem, ...] = ()
    total_material_cost: str = "0.00"
    total_factory_cost: str = "0.00"
    notes: str | None = None
    source_name: str | None = field(default=None, compare=False)

    def section(self, tag: SectionTag) -> tuple[Any, ...]:
        if tag not in ITEM_SECTIONS:
            raise KeyError(f"section '{tag.value}' carries no line items")
        return getattr(self, tag.value)

    def item_counts(self) -> dict[str, int]:
        return {tag.value: len(self.section(tag)) for tag in ITEM_SECTIONS}

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        for tag in ITEM_SECTIONS:
            data[tag.value] = [asdict(item) for item in self.section(tag)]
        return data
