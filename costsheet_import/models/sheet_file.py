from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

"""CostSheetFile domain model and FileStatus enum.

A CostSheetFile is the processing context of one cost sheet file, tracked
from discovery to success/failed.
"""


class FileStatus(Enum):
    """Status of a cost sheet file.

    State transitions: pending → processing → (success | failed)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class CostSheetFile:
    path: Path
    name: str
    sheet: str                          # 読み込んだシート名 (先頭シートなら実名)
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: FileStatus = FileStatus.PENDING
    action: str | None = None           # inserted / updated
    record_id: int | None = None
    matched_by: str | None = None
    error: str | None = None            # Failure reason summary

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
