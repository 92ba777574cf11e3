from __future__ import annotations

from pathlib import Path

import pytest

from luxmon.config import LuxmonConfig, save_config
from luxmon.dataio import CsvSink
from luxmon.gui.application import _parse_cli_args, dump_records, main, resolve_config


def test_cli_overrides_apply_on_top_of_file(tmp_path: Path) -> None:
    cfg_path = tmp_path / "luxmon.yaml"
    save_config(cfg_path, LuxmonConfig(serial_port="/dev/ttyS0", baud_rate=19200, storage_backend="mongo"))

    args, qt_argv = _parse_cli_args(
        ["luxmon", "--config", str(cfg_path), "--port", "COM7", "--storage", "csv"]
    )
    cfg = resolve_config(args)

    assert cfg.serial_port == "COM7"
    assert cfg.baud_rate == 19200
    assert cfg.storage_backend == "csv"
    assert qt_argv == ["luxmon"]


def test_dump_records_prints_tab_separated_rows(tmp_path: Path, capsys) -> None:
    sink = CsvSink(tmp_path)
    sink.insert_derived(1234.5)
    sink.insert_derived(0.25)

    code = dump_records(LuxmonConfig(storage_backend="csv", csv_dir=str(tmp_path)), "derived")

    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("\t1234.50000000")
    assert lines[1].endswith("\t0.25000000")


def test_main_dump_exits_with_status(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.delenv("LUXMON_CONFIG", raising=False)
    cfg_path = tmp_path / "luxmon.yaml"
    save_config(cfg_path, LuxmonConfig(storage_backend="csv", csv_dir=str(tmp_path / "data")))

    with pytest.raises(SystemExit) as excinfo:
        main(["luxmon", "--config", str(cfg_path), "--dump", "raw"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out == ""
