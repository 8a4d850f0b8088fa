from __future__ import annotations

import json
from pathlib import Path

from costsheet_import.cli import main as cli_main

"""End-to-end partial failure: bad files are logged, good files still land, exit 2."""


def test_partial_failure(write_config, write_costsheet, temp_workdir: Path, ballcaps_grid, capsys):
    data = temp_workdir / "data"
    write_costsheet("a_cap.xlsx", ballcaps_grid)
    (data / "b_corrupt.xlsx").write_bytes(b"PK\x03\x04 truncated")
    write_costsheet("c_blank.xlsx", [[None, ""], [""]])
    (data / "~$a_cap.xlsx").write_bytes(b"lock file")

    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 2
    assert "SUMMARY files=3/3 success=1 failed=2 inserted=1 updated=0" in out
    assert "ERROR b_corrupt.xlsx: READ_ERROR" in out
    assert "ERROR c_blank.xlsx: EMPTY_SHEET" in out
    assert "INFO error log: logs" in out

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    entries = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(e["file"], e["error_type"], e["row"]) for e in entries] == [
        ("b_corrupt.xlsx", "READ_ERROR", -1),
        ("c_blank.xlsx", "EMPTY_SHEET", -1),
    ]
