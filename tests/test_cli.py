import json
from pathlib import Path

import pytest

from map_text import SAMPLE_MAP
from minermap.__main__ import _coordinate, build_parser, main
from minermap.db.report_log import read_reports


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_parser_reads_path_coordinates() -> None:
    args = build_parser().parse_args(["level.dat", "--path", "1,1", "3,4", "--drill"])
    assert args.path == [(1, 1), (3, 4)]
    assert args.drill


def test_bad_coordinate_is_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["level.dat", "--path", "1", "3,4"])
    assert _coordinate(" 2, 5") == (2, 5)


def test_main_prints_report(tmp_path: Path, capsys) -> None:
    path = _write(tmp_path, "sample.dat", SAMPLE_MAP)
    assert main([str(path), "--stats"]) == 0
    out = capsys.readouterr().out
    assert "Issues" in out
    assert "Statistics" in out


def test_main_json_output(tmp_path: Path, capsys) -> None:
    path = _write(tmp_path, "sample.dat", SAMPLE_MAP)
    assert main([str(path), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["source"] == str(path)
    assert payload["statistics"]["rows"] == 5


def test_strict_mode_fails_on_errors(tmp_path: Path) -> None:
    broken = _write(tmp_path, "broken.dat", "info{\nrowcount:5\n")
    assert main([str(broken)]) == 0
    assert main([str(broken), "--strict"]) == 1


def test_missing_file_counts_as_failure(tmp_path: Path) -> None:
    assert main([str(tmp_path / "absent.dat"), "--strict"]) == 1


def test_main_appends_to_report_log(tmp_path: Path) -> None:
    path = _write(tmp_path, "sample.dat", SAMPLE_MAP)
    log = tmp_path / "reports.jsonl"
    assert main([str(path), "--log", str(log), "--path", "1,1", "3,3"]) == 0
    reports = list(read_reports(log))
    assert [report.source for report in reports] == [str(path)]
