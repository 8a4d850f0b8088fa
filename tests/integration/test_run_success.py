from __future__ import annotations

from pathlib import Path

from costsheet_import.cli import main as cli_main
from costsheet_import.config.loader import load_config
from costsheet_import.db.store import MemoryCostStore
from costsheet_import.services.orchestrator import process_all

"""End-to-end: real workbooks on disk, mock (in-memory) store."""


def test_cli_run_ballcaps_and_beanie(write_config, write_costsheet, ballcaps_grid, beanie_grid, capsys):
    write_costsheet("cap.xlsx", ballcaps_grid)
    write_costsheet("beanie.xlsx", beanie_grid)

    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY files=2/2 success=2 failed=0 inserted=2 updated=0" in out
    assert "ERROR" not in out


def test_rerun_updates_instead_of_inserting(write_config, write_costsheet, ballcaps_grid, beanie_grid):
    write_costsheet("cap.xlsx", ballcaps_grid)
    write_costsheet("beanie.xlsx", beanie_grid)
    cfg = load_config(write_config)
    store = MemoryCostStore()

    first = process_all(cfg, store=store)
    second = process_all(cfg, store=store)

    assert (first.inserted_records, first.updated_records) == (2, 0)
    assert (second.inserted_records, second.updated_records) == (0, 2)
    assert len(store.rows) == 2

    by_style = {r["style_number"]: r for r in store.rows}
    cap = by_style["BC-100"]
    assert cap["ttl_fty_cost"] == "6.96"
    assert cap["ops_cost"] == "1.46"
    assert cap["remarks"].startswith("Ballcaps data updated on ")
    beanie = by_style["BN-200"]
    assert beanie["knitting_ops_cost"] == "0.70"
    assert beanie["total_material_cost"] == "1.00"
    assert beanie["remarks"].startswith("Beanie data updated on ")


def test_csv_sheet(write_config, temp_workdir: Path, capsys):
    (temp_workdir / "data" / "cap.csv").write_text(
        "Customer:,Acme,,Season:,F25\n"
        "Style#:,BC-300\n"
        "FABRIC,CONSUMPTION,MATERIAL PRICE,MATERIAL COST\n"
        "Poly Twill,0.25,4,1\n"
        "OPERATIONS,TIME,COST (USD/MIN),OPERATION COST\n"
        "Sewing,10,0.05,0.5\n"
        "TOTAL FACTORY COST,,,1.5\n",
        encoding="utf-8",
    )
    cfg = load_config(write_config)
    store = MemoryCostStore()
    result = process_all(cfg, store=store)

    assert result.success_files == 1
    row = store.rows[0]
    assert row["style_number"] == "BC-300"
    assert row["main_material"] == "Poly Twill"
    assert row["total_material_cost"] == "1.00"
    assert row["ttl_fty_cost"] == "1.50"
