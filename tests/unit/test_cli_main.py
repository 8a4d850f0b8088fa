from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from costsheet_import.cli import main as cli_main
from costsheet_import.db.pool import PoolError


def test_cli_no_files_success(write_config, capsys):
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO Processing files from: data" in out
    assert "SUMMARY files=0/0 success=0 failed=0 inserted=0 updated=0" in out


def test_cli_imports_sheet(write_config, write_costsheet, ballcaps_grid, capsys):
    write_costsheet("cap.xlsx", ballcaps_grid)
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO cap.xlsx: inserted id=1" in out
    assert "INFO mode=mock inserted=1 updated=0" in out
    assert "SUMMARY files=1/1 success=1 failed=0 inserted=1 updated=0" in out


def test_cli_directory_missing(write_config, capsys):
    text = write_config.read_text(encoding="utf-8").replace("./data", "./missing_dir")
    write_config.write_text(text, encoding="utf-8")
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR directory not found:" in out


def test_cli_config_missing(temp_workdir: Path, capsys):
    code = cli_main(["--config", str(temp_workdir / "config" / "absent.yml")])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config: config file not found" in out


def test_cli_debug_mode(write_config, capsys):
    code = cli_main(["--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG file stats:" in out


def test_cli_category_override(write_config, write_costsheet, beanie_grid, capsys):
    write_costsheet("beanie.xlsx", beanie_grid)
    code = cli_main(["--category", "ballcaps", "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    payload = json.loads(out[out.index("{"):out.rindex("}") + 1])
    assert payload["category"] == "ballcaps"
    assert payload["yarn"] == []


def test_cli_inspect_data(write_config, write_costsheet, ballcaps_grid, capsys):
    write_costsheet("cap.xlsx", ballcaps_grid)
    (write_config.parent.parent / "data" / "broken.xlsx").write_bytes(b"not a workbook")
    code = cli_main(["--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: broken.xlsx" in out
    assert "  error: broken.xlsx:" in out
    assert "FILE: cap.xlsx" in out
    assert "  SHEET: Cost Sheet" in out
    assert '"customer": "Acme"' in out
    assert '"total_factory_cost": "6.96"' in out
    # nothing saved, no SUMMARY line
    assert "SUMMARY" not in out


def test_cli_inspect_no_files(write_config, capsys):
    assert cli_main(["--inspect-data"]) == 0
    assert "inspect: no cost sheet files" in capsys.readouterr().out


def test_cli_live_mode_falls_back_to_mock(write_config, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    with patch(
        "costsheet_import.cli.__main__.ConnectionPool.from_config",
        side_effect=PoolError("connection refused"),
    ):
        code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO DB connection failed -> fallback to mock mode: connection refused" in out
    assert "INFO mode=mock" in out


def test_cli_live_mode_uses_pool(write_config, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    pool = MagicMock()
    with patch("costsheet_import.cli.__main__.ConnectionPool.from_config", return_value=pool):
        code = cli_main([])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO mode=live" in out
    pool.close.assert_called_once()


def test_cli_env_file_overrides_environment(write_config, temp_workdir: Path, monkeypatch, capsys):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "0")
    (temp_workdir / ".env").write_text("DISABLE_DB_CONNECT=1\n", encoding="utf-8")
    with patch("costsheet_import.cli.__main__.ConnectionPool.from_config") as from_config:
        code = cli_main([])
    assert code == 0
    from_config.assert_not_called()
    assert "INFO mode=mock" in capsys.readouterr().out
