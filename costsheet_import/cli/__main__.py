from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.pool import ConnectionPool, PoolError
from ..excel.reader import SheetReadError, read_grid
from ..extraction.assembler import EmptyGridError, extract_cost_record
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..services.orchestrator import (
    ProcessingError,
    process_all,
    scan_cost_sheet_files,
    summarize_file_stats,
)
from ..services.summary import render_summary_line

"""CLI entrypoint: ``python -m costsheet_import.cli``.

Flow: load .env and config, pick live (PostgreSQL) or mock (in-memory) mode,
import every cost sheet of source_directory, print one SUMMARY line.

Exit codes: 0 all files saved, 2 at least one file failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; override=True lets .env win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Cost sheet -> PostgreSQL importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print each extracted cost record as JSON and exit without saving",
    )
    p.add_argument(
        "--category",
        choices=("auto", "ballcaps", "beanie"),
        default=None,
        help="Override the category from config (default: config value)",
    )
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig, category: str | None) -> int:
    files = scan_cost_sheet_files(Path(cfg.source_directory), cfg.file_extensions)
    if not files:
        print("inspect: no cost sheet files")
        return EXIT_SUCCESS_ALL
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sheet, grid = read_grid(f, cfg.sheet_name)
            record = extract_cost_record(grid, category=category or cfg.category, source_name=f.name)
        except (SheetReadError, EmptyGridError, ValueError) as e:
            print(f"  error: {e}")
            continue
        print(f"  SHEET: {sheet}")
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # cli_main([]) をテストから呼ぶ場合に pytest の引数を拾わないよう None のときだけ sys.argv を読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    logger.info(f"Processing files from: {directory}")

    if args.inspect_data:
        try:
            return _inspect_data(cfg, args.category)
        except ProcessingError as e:
            logger.error(f"inspect: {e}")
            return EXIT_FATAL

    # DISABLE_DB_CONNECT=1 で DB 接続を完全に無効化 (テスト用)
    pool: ConnectionPool | None = None
    db_mode = "mock"
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
    else:
        try:
            pool = ConnectionPool.from_config(cfg.database)
            db_mode = "live"
        except PoolError as e:
            logger.info(f"DB connection failed -> fallback to mock mode: {e}")

    try:
        result = process_all(cfg, pool=pool, category=args.category)
    except ProcessingError as e:
        logger.error(f"processing({db_mode}): {e}")
        return EXIT_FATAL
    finally:
        if pool is not None:
            pool.close()

    logger.info(f"mode={db_mode} inserted={result.inserted_records} updated={result.updated_records}")
    logger.debug(f"file stats: {summarize_file_stats(result.file_stats)}")

    summary_line = render_summary_line(result.total_files, result)
    # log_summary adds the "SUMMARY " prefix
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
