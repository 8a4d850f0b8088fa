from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Supports row=-1 as a sentinel value for file-level errors where the specific
row cannot be determined (read failures, empty sheets, persistence errors).
"""

__all__ = [
    "ErrorRecord",
    "ERROR_TYPES",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1

ERROR_TYPES = frozenset(
    {
        "READ_ERROR",
        "EMPTY_SHEET",
        "EXTRACTION_ERROR",
        "PERSISTENCE_ERROR",
    }
)


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: cost sheet file name
        sheet: sheet name within the file ('' for CSV)
        row: 1-based row number, -1 when unknown
        error_type: one of ERROR_TYPES
        message: error description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int  # 行番号。不明な場合 -1 許容
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        if error_type not in ERROR_TYPES:
            raise ValueError(f"unknown error_type: {error_type}")
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
