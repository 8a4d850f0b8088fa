from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_EXTENSIONS,
    DatabaseConfig,
    ImportConfig,
    ReconciliationConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults (table=databank, category=auto, timezone=UTC ...)
- Reject timezones zoneinfo does not know (remarks timestamps use it)
"""

__all__ = ["ConfigError", "SCHEMA_PATH", "DEFAULT_CONFIG_PATH", "load_config"]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or broken, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _normalize_extensions(raw: list[str] | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_EXTENSIONS
    exts = []
    for ext in raw:
        ext = ext.strip().lower()
        exts.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(dict.fromkeys(exts))


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    timezone = data.get("timezone", "UTC")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {timezone}") from e

    rec_raw = data.get("reconciliation") or {}
    reconciliation = ReconciliationConfig(
        lenient_match=rec_raw.get("lenient_match", True),
        advisory_lock=rec_raw.get("advisory_lock", True),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        table=data.get("table", "databank"),
        category=data.get("category", "auto"),
        sheet_name=data.get("sheet_name"),
        file_extensions=_normalize_extensions(data.get("file_extensions")),
        timezone=timezone,
        reconciliation=reconciliation,
        database=db,
    )
