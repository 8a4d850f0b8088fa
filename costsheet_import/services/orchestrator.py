from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from ..db.pool import ConnectionPool
from ..db.store import MemoryCostStore, PostgresCostStore
from ..excel.reader import SheetReadError, read_grid
from ..extraction.assembler import EmptyGridError, extract_cost_record
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.processing_result import FileStat, ProcessingResult
from ..models.save_result import ACTION_INSERTED, ACTION_UPDATED
from ..models.sheet_file import CostSheetFile, FileStatus
from .progress import ProgressTracker
from .reconcile import CostStore, save_cost_record

"""Batch orchestration.

Scans the source directory, then for every cost sheet file: read one sheet,
extract the CostRecord, reconcile it against the store. Each file runs in its
own transaction when a ConnectionPool is given; a failing file is rolled
back, written to the JSON Lines error log, and the run moves on.
"""

__all__ = [
    "ProcessingError",
    "scan_cost_sheet_files",
    "process_file",
    "process_all",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal run-level error (directory missing / unreadable)."""


def scan_cost_sheet_files(directory: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Cost sheet files in ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: directory missing, not a directory, or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    wanted = {e.lower() for e in extensions}
    try:
        files = [
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in wanted and not p.name.startswith("~$")
        ]
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name)


def _failed(
    file_path: Path,
    sheet: str,
    start: datetime,
    error_log: ErrorLogBuffer,
    error_type: str,
    message: str,
) -> CostSheetFile:
    error_log.record(file_path.name, error_type, message, sheet=sheet)
    logger.error(f"{file_path.name}: {error_type} {message}")
    return CostSheetFile(
        path=file_path,
        name=file_path.name,
        sheet=sheet,
        start_time=start,
        end_time=datetime.now(UTC),
        status=FileStatus.FAILED,
        error=message,
    )


def process_file(
    file_path: Path,
    config: ImportConfig,
    store: CostStore,
    error_log: ErrorLogBuffer,
    category: str | None = None,
) -> CostSheetFile:
    """Read, extract and save one file. Never raises for per-file problems."""
    start = datetime.now(UTC)
    sheet = config.sheet_name or ""
    try:
        sheet, grid = read_grid(file_path, config.sheet_name)
    except SheetReadError as e:
        return _failed(file_path, sheet, start, error_log, "READ_ERROR", str(e))

    try:
        record = extract_cost_record(
            grid,
            category=category or config.category,
            source_name=file_path.name,
        )
    except EmptyGridError as e:
        return _failed(file_path, sheet, start, error_log, "EMPTY_SHEET", str(e))
    except ValueError as e:
        return _failed(file_path, sheet, start, error_log, "EXTRACTION_ERROR", str(e))

    tz = ZoneInfo(config.timezone)
    result = save_cost_record(
        record,
        store,
        lenient_match=config.reconciliation.lenient_match,
        advisory_lock=config.reconciliation.advisory_lock,
        clock=lambda: datetime.now(tz),
    )
    if not result.success:
        return _failed(file_path, sheet, start, error_log, "PERSISTENCE_ERROR", result.message)

    logger.info(f"{file_path.name}: {result.message}")
    return CostSheetFile(
        path=file_path,
        name=file_path.name,
        sheet=sheet,
        start_time=start,
        end_time=datetime.now(UTC),
        status=FileStatus.SUCCESS,
        action=result.action,
        record_id=result.record_id,
        matched_by=result.matched_by,
    )


def _process_in_session(
    file_path: Path,
    config: ImportConfig,
    pool: ConnectionPool,
    error_log: ErrorLogBuffer,
    category: str | None,
) -> CostSheetFile:
    start = datetime.now(UTC)
    try:
        with pool.session() as cursor:
            outcome = process_file(
                file_path,
                config,
                PostgresCostStore(cursor, config.table),
                error_log,
                category,
            )
            if outcome.status is FileStatus.FAILED:
                # ファイル単位で巻き戻す
                cursor.connection.rollback()
            return outcome
    except Exception as e:
        # commit / connection failures surface here
        return _failed(file_path, config.sheet_name or "", start, error_log, "PERSISTENCE_ERROR", str(e))


def process_all(
    config: ImportConfig,
    pool: ConnectionPool | None = None,
    store: CostStore | None = None,
    category: str | None = None,
) -> ProcessingResult:
    """Process every cost sheet file of the configured directory.

    Args:
        config: import configuration
        pool: live database; each file gets its own session (transaction)
        store: store used when no pool is given (default: fresh MemoryCostStore, mock mode)
        category: overrides config.category

    Raises:
        ProcessingError: the directory cannot be scanned
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer()
    file_paths = scan_cost_sheet_files(Path(config.source_directory), config.file_extensions)

    if pool is None and store is None:
        store = MemoryCostStore()

    file_stats: list[FileStat] = []
    success = failed = inserted = updated = 0

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            if pool is not None:
                outcome = _process_in_session(file_path, config, pool, error_log, category)
            else:
                outcome = process_file(file_path, config, store, error_log, category)

            if outcome.status is FileStatus.SUCCESS:
                success += 1
                if outcome.action == ACTION_INSERTED:
                    inserted += 1
                elif outcome.action == ACTION_UPDATED:
                    updated += 1
            else:
                failed += 1

            progress.set_postfix(inserted=inserted, updated=updated, failed=failed)
            progress.finish_file(success=outcome.status is FileStatus.SUCCESS)
            file_stats.append(
                FileStat(
                    file_name=outcome.name,
                    status=outcome.status.value,
                    action=outcome.action,
                    elapsed_seconds=outcome.elapsed_seconds,
                    matched_by=outcome.matched_by,
                )
            )

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"error log flush failed: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log: {log_path}")

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=success,
        failed_files=failed,
        inserted_records=inserted,
        updated_records=updated,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )


def summarize_file_stats(stats: list[FileStat] | None) -> dict[str, Any]:
    """Counts per status / action, used by --debug output."""
    counts: dict[str, Any] = {"success": 0, "failed": 0, "inserted": 0, "updated": 0}
    for s in stats or []:
        counts[s.status] = counts.get(s.status, 0) + 1
        if s.action:
            counts[s.action] = counts.get(s.action, 0) + 1
    return counts
