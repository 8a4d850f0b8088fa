from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the cost sheet importer.

Built by costsheet_import.config.loader from config/import.yml.
"""

DEFAULT_EXTENSIONS = (".xlsx", ".xlsm", ".xls", ".csv")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence over
    these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ReconciliationConfig:
    lenient_match: bool = True  # (customer, season) だけで一致させるか
    advisory_lock: bool = True


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    source_directory: str
    table: str = "databank"
    category: str = "auto"  # auto | ballcaps | beanie
    sheet_name: str | None = None  # None -> first sheet
    file_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    timezone: str = "UTC"
    reconciliation: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
