from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Outcome of one reconciliation call."""

__all__ = ["SaveResult", "ACTION_INSERTED", "ACTION_UPDATED"]

ACTION_INSERTED = "inserted"
ACTION_UPDATED = "updated"


@dataclass(frozen=True)
class SaveResult:
    """Result of saving a CostRecord.

    Attributes:
        success: False when the store rejected the write
        action: 'inserted' or 'updated'; None on failure
        record: stored row as returned by the store (includes ``id``)
        matched_by: name of the match strategy that found the prior row
        message: human-readable outcome, the store error on failure
    """
    success: bool
    action: str | None = None
    record: dict[str, Any] | None = None
    matched_by: str | None = None
    message: str = ""

    @property
    def record_id(self) -> Any:
        return None if self.record is None else self.record.get("id")

    @staticmethod
    def failed(message: str) -> SaveResult:
        return SaveResult(success=False, message=message)
