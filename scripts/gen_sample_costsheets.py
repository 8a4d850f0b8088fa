#!/usr/bin/env python3
"""Generate synthetic cost breakdown sheets.

Writes ball cap and/or beanie cost sheets laid out the way the importer
expects them (header fields, section labels, column header rows, totals,
TOTAL FACTORY COST, a footer table below it). Useful for trying the CLI and
for timing a directory of a few thousand sheets.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

CUSTOMERS = ["Acme", "Northwind", "Globex", "Initech", "Umbrella"]
SEASONS = ["SS25", "F25", "SS26", "F26"]
FABRICS = ["Poly Twill", "Cotton Twill", "Nylon Ripstop", "Washed Canvas"]
TRIMS = ["Sweatband", "Buckle", "Eyelets", "Visor Board", "Label"]
YARNS = ["Acrylic 2/28", "Merino 2/30", "Recycled Poly"]


def _money(rng: np.random.Generator, low: float, high: float) -> float:
    return float(np.round(rng.uniform(low, high), 2))


def ballcaps_rows(rng: np.random.Generator, index: int) -> list[list[Any]]:
    fabric = [
        [name, _money(rng, 0.1, 0.6), _money(rng, 1, 6)]
        for name in rng.choice(FABRICS, size=2, replace=False)
    ]
    trims = [[name, 1, _money(rng, 0.02, 0.4)] for name in rng.choice(TRIMS, size=3, replace=False)]
    rows: list[list[Any]] = [
        ["Customer：", rng.choice(CUSTOMERS), None, "Season：", rng.choice(SEASONS)],
        ["Style#:", f"BC-{100 + index}", None, "Style Name:", f"Cap {index}"],
        ["Costed Quantity:", int(rng.integers(1, 10)) * 600, None, "Leadtime:", "60 days"],
        [],
        ["FABRIC", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
    ]
    material = 0.0
    for name, cons, price in fabric:
        cost = round(cons * price, 4)
        material += cost
        rows.append([name, cons, price, cost])
    rows.append(["TRIM", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"])
    for name, cons, price in trims:
        material += price
        rows.append([name, cons, price, price])
    rows.append(["TOTAL MATERIAL COST", None, None, round(material, 4)])
    smv = _money(rng, 8, 20)
    cpm = _money(rng, 0.05, 0.12)
    ops = round(smv * cpm, 4)
    packaging = _money(rng, 0.05, 0.3)
    oh = _money(rng, 0.5, 2)
    profit = _money(rng, 0.5, 2)
    rows += [
        ["OPERATIONS", "TIME", "COST (USD/MIN)", "OPERATION COST"],
        ["Sewing", smv, cpm, ops],
        ["PACKAGING", "FACTORY NOTES", None, "COST"],
        ["Polybag", "1 per cap", None, packaging],
        ["OVERHEAD/ PROFIT"],
        ["OVERHEAD", None, None, oh],
        ["PROFIT", None, None, profit],
        ["TOTAL FACTORY COST", None, None, round(material + ops + packaging + oh + profit, 4)],
        [],
        ["Reference", "Rate"],
        ["Embroidery 10k", 0.35],
    ]
    return rows


def beanie_rows(rng: np.random.Generator, index: int) -> list[list[Any]]:
    yarn = rng.choice(YARNS)
    cons = _money(rng, 0.05, 0.12)
    price = _money(rng, 8, 20)
    yarn_cost = round(cons * price, 4)
    k_time = _money(rng, 4, 10)
    k_rate = _money(rng, 0.04, 0.09)
    k_cost = round(k_time * k_rate, 4)
    ops = _money(rng, 0.2, 0.6)
    rows: list[list[Any]] = [
        ["Customer：", rng.choice(CUSTOMERS), None, "Season：", rng.choice(SEASONS)],
        ["Style#:", f"BN-{200 + index}", None, "Style Name:", f"Beanie {index}"],
        ["MOQ", 1200],
        [],
        ["MATERIAL", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
        [yarn, cons, price, yarn_cost],
        ["TOTAL MATERIAL COST", None, None, yarn_cost],
        ["KNITTING", "KNITTING TIME", "KNITTING SAH", "KNITTING COST"],
        ["Shima 12G", k_time, k_rate, k_cost],
        ["OPERATIONS", "TIME", "COST (USD/MIN)", "OPERATION COST"],
        ["Linking", None, None, ops],
        ["TOTAL FACTORY COST", None, None, round(yarn_cost + k_cost + ops, 4)],
    ]
    return rows


def create_costsheet(output_path: Path, rows: list[list[Any]], sheet_name: str = "Cost Sheet") -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic cost breakdown sheets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 20 ball cap sheets into ./data
  %(prog)s data --count 20

  # beanies only, custom seed
  %(prog)s data --count 5 --category beanie --seed 7
        """,
    )
    parser.add_argument("output_dir", type=Path, help="Directory to write .xlsx files into")
    parser.add_argument("--count", type=int, default=10, help="Number of sheets (default: 10)")
    parser.add_argument(
        "--category",
        choices=("ballcaps", "beanie", "mixed"),
        default="mixed",
        help="Category of the generated sheets (default: mixed)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.count <= 0:
        print("Error: --count must be positive", file=sys.stderr)
        return 1

    rng = np.random.default_rng(args.seed)
    for i in range(args.count):
        beanie = args.category == "beanie" or (args.category == "mixed" and i % 2 == 1)
        rows = beanie_rows(rng, i) if beanie else ballcaps_rows(rng, i)
        name = f"{'beanie' if beanie else 'ballcaps'}_{i:04d}.xlsx"
        create_costsheet(args.output_dir / name, rows)
    print(f"Created {args.count} cost sheets in {args.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
