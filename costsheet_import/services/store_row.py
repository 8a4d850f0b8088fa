from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from ..extraction.cells import normalize_to_decimal_string
from ..models.cost_record import Category, CostLineItem, CostRecord

"""CostRecord -> flat store row.

Money fields are decimal strings ("2.00"); psycopg2 sends them as text and
PostgreSQL casts them into numeric columns.
"""

__all__ = [
    "STORE_FIELDS",
    "BEANIE_FIELDS",
    "split_overhead",
    "to_store_row",
]

STORE_FIELDS = (
    "customer",
    "season",
    "style_number",
    "style_name",
    "main_material",
    "material_consumption",
    "material_price",
    "trim_cost",
    "total_material_cost",
    "ops_cost",
    "packaging",
    "oh",
    "profit",
    "ttl_fty_cost",
)

BEANIE_FIELDS = (
    "knitting_machine",
    "knitting_time",
    "knitting_cpm",
    "knitting_cost",
    "knitting_ops_cost",
)

_OH_RE = re.compile(r"\bOH\b")


def _money(total: Decimal) -> str:
    return normalize_to_decimal_string(str(total))


def _sum(values: Iterable[str]) -> Decimal:
    return sum((Decimal(v) for v in values), Decimal(0))


def split_overhead(items: Iterable[CostLineItem]) -> tuple[str, str]:
    """(oh, profit) summed from overhead items by label.

    PROFIT is tested first so "OVERHEAD & PROFIT" style labels count as profit.
    """
    oh = profit = Decimal(0)
    for item in items:
        label = item.label.upper()
        if "PROFIT" in label:
            profit += Decimal(item.cost)
        elif "OVERHEAD" in label or _OH_RE.search(label):
            oh += Decimal(item.cost)
    return _money(oh), _money(profit)


def to_store_row(record: CostRecord) -> dict[str, Any]:
    beanie = record.category is Category.BEANIE
    materials = record.yarn if beanie and record.yarn else record.fabric
    main = materials[0] if materials else None

    ops_cost = _sum(i.total for i in record.operations)
    oh, profit = split_overhead(record.overhead)
    row: dict[str, Any] = {
        "customer": record.customer,
        "season": record.season,
        "style_number": record.style_number,
        "style_name": record.style_name,
        "main_material": main.label if main else "",
        "material_consumption": (main.consumption or "0.00") if main else "0.00",
        "material_price": (main.price or "0.00") if main else "0.00",
        "trim_cost": _money(_sum(i.cost for i in (*record.trim, *record.other_fabric_trim))),
        "total_material_cost": record.total_material_cost,
        "ops_cost": _money(ops_cost),
        "packaging": _money(_sum(i.cost for i in record.packaging)),
        "oh": oh,
        "profit": profit,
        "ttl_fty_cost": record.total_factory_cost,
    }
    if beanie:
        first = record.knitting[0] if record.knitting else None
        knitting_cost = _sum(i.total for i in record.knitting)
        row.update(
            knitting_machine=first.label if first else "",
            knitting_time=first.time if first else "0.00",
            knitting_cpm=first.cost_per_minute if first else "0.00",
            knitting_cost=_money(knitting_cost),
            knitting_ops_cost=_money(knitting_cost + ops_cost),
        )
    return row
