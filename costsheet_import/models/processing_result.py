from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for a cost sheet import run.

ProcessingResult carries every figure the SUMMARY line needs.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file statistics."""
    file_name: str  # ファイル名
    status: str  # success/failed
    action: str | None  # inserted/updated, None on failure
    elapsed_seconds: float  # ファイル処理時間
    matched_by: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    success_files: int
    failed_files: int
    inserted_records: int
    updated_records: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float  # end - start
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
