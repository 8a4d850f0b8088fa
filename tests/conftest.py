# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from costsheet_import.logging.init import reset_logging

BALLCAPS_ROWS: list[list[Any]] = [
    ["Customer：", "Acme", None, "Season：", "F25"],
    ["Style#:", "BC-100", None, "Style Name:", "Classic Cap"],
    ["Costed Quantity:", 1200, None, "Leadtime:", "60 days"],
    [None],
    ["FABRIC", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
    ["Poly Twill", 0.25, 4.0, 1.0],
    ["Mesh Back", 0.1, 2.5, 0.25],
    ["EMBROIDERY"],
    ["Front logo 3D", 1, 0.45, 0.45],
    ["TRIM", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
    ["Sweatband", 1, 0.12, 0.12],
    ["Buckle", 1, 0.08, 0.08],
    ["TOTAL MATERIAL COST", None, None, 1.9],
    ["OPERATIONS", "TIME", "COST (USD/MIN)", "OPERATION COST"],
    ["Sewing", 12, 0.08, 0.96],
    ["Logo stitching", 5, 0.1, None],
    ["PACKAGING", "FACTORY NOTES", None, "COST"],
    ["Polybag", "1 per cap", None, 0.1],
    ["OVERHEAD/ PROFIT"],
    ["OVERHEAD", None, None, 2.0],
    ["PROFIT", None, None, 1.5],
    ["TOTAL FACTORY COST", None, None, 6.96],
    ["Reference rates"],
    ["Sewing", 10, 0.07, 0.7],
]

BEANIE_ROWS: list[list[Any]] = [
    ["Customer：", "Acme", None, "Season：", "W25"],
    ["Style#:", "BN-200", None, "Style Name:", "Cuff Beanie"],
    ["MOQ", 1200],
    ["YARN", "CONSUMPTION", "MATERIAL PRICE", "MATERIAL COST"],
    ["Acrylic 2/28", 0.08, 12.5, 1.0],
    ["KNITTING", "KNITTING TIME", "KNITTING SAH", "KNITTING COST"],
    ["Shima 12G", 6, 0.05, 0.3],
    ["OPERATIONS", "TIME", "COST (USD/MIN)", "OPERATION COST"],
    ["Linking", None, None, 0.4],
    ["TOTAL FACTORY COST", None, None, 1.7],
]


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
table: databank
category: auto
timezone: UTC
reconciliation:
  lenient_match: true
  advisory_lock: true
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def ballcaps_grid() -> list[list[Any]]:
    return [list(r) for r in BALLCAPS_ROWS]


@pytest.fixture()
def beanie_grid() -> list[list[Any]]:
    return [list(r) for r in BEANIE_ROWS]


def make_costsheet(path: Path, rows: list[list[Any]], sheet_name: str = "Cost Sheet") -> Path:
    """Write ``rows`` as a real workbook (no header row)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def write_costsheet(temp_workdir: Path) -> Callable[..., Path]:
    def _write(name: str, rows: list[list[Any]], sheet_name: str = "Cost Sheet") -> Path:
        return make_costsheet(temp_workdir / "data" / name, rows, sheet_name)
    return _write


@pytest.fixture()
def make_xlsx() -> Callable[..., Path]:
    return make_costsheet
