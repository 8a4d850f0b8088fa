from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

"""Cost sheet reader.

Decodes a workbook sheet or a CSV file into a RawGrid: a list of rows, each
a list of untyped cells. No header row is applied; the extraction package
decides what every row means. Empty cells come back as None.

xlsx / xlsm go through openpyxl, legacy .xls needs xlrd installed.
"""

__all__ = [
    "SheetReadError",
    "EXCEL_EXTENSIONS",
    "CSV_EXTENSIONS",
    "list_sheets",
    "read_grid",
]

EXCEL_EXTENSIONS = frozenset({".xlsx", ".xlsm", ".xls"})
CSV_EXTENSIONS = frozenset({".csv"})


class SheetReadError(Exception):
    """Raised when a file cannot be decoded into a grid."""


def _engine_for(path: Path) -> str | None:
    # .xls は pandas の既定 (xlrd) に任せる
    return "openpyxl" if path.suffix.lower() in (".xlsx", ".xlsm") else None


def list_sheets(path: Path) -> list[str]:
    suffix = path.suffix.lower()
    if suffix in CSV_EXTENSIONS:
        return [path.stem]
    if suffix not in EXCEL_EXTENSIONS:
        raise SheetReadError(f"unsupported file type: {path.name}")
    try:
        with pd.ExcelFile(path, engine=_engine_for(path)) as xls:
            return [str(name) for name in xls.sheet_names]
    except Exception as e:
        raise SheetReadError(f"{path.name}: {e}") from e


def _frame_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    # NaN -> None; keep_default_na=False so literal "NA" text survives
    cleaned = df.astype(object).where(pd.notna(df), None)
    return [list(row) for row in cleaned.itertuples(index=False, name=None)]


def read_grid(path: Path, sheet_name: str | None = None) -> tuple[str, list[list[Any]]]:
    """Read one sheet of ``path``.

    Parameters
    ----------
    path: workbook or CSV file
    sheet_name: sheet to read; None reads the first sheet (ignored for CSV)

    Returns
    -------
    (sheet name actually read, grid)
    """
    suffix = path.suffix.lower()
    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(
                path,
                header=None,
                dtype=object,
                keep_default_na=False,
                na_values=[""],
                skip_blank_lines=False,
                encoding_errors="replace",
            )
            return path.stem, _frame_to_grid(df)
        if suffix not in EXCEL_EXTENSIONS:
            raise SheetReadError(f"unsupported file type: {path.name}")
        with pd.ExcelFile(path, engine=_engine_for(path)) as xls:
            names = [str(n) for n in xls.sheet_names]
            if not names:
                raise SheetReadError(f"{path.name}: workbook has no sheets")
            target = sheet_name if sheet_name is not None else names[0]
            if target not in names:
                raise SheetReadError(f"{path.name}: sheet '{target}' not found (have {names})")
            df = xls.parse(target, header=None, keep_default_na=False, na_values=[""])
            return target, _frame_to_grid(df)
    except SheetReadError:
        raise
    except pd.errors.EmptyDataError:
        return (path.stem if suffix in CSV_EXTENSIONS else sheet_name or ""), []
    except Exception as e:
        raise SheetReadError(f"{path.name}: {e}") from e
