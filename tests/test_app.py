from pathlib import Path

from map_text import DIRT, SAMPLE_MAP, build_map, tool_store, walled_grid
from minermap.app import AnalysisSession, analyze_file, fingerprint, resolve_config
from minermap.core.config import AnalysisConfig
from minermap.core.contracts import IssueKind


def test_same_text_reuses_cached_report() -> None:
    session = AnalysisSession(AnalysisConfig())
    first = session.analyze(SAMPLE_MAP)
    second = session.analyze(SAMPLE_MAP)
    assert first is second
    assert first.fingerprint == fingerprint(SAMPLE_MAP)
    assert first.statistics is not None


def test_different_text_replaces_cache_entry() -> None:
    session = AnalysisSession(AnalysisConfig())
    first = session.analyze(SAMPLE_MAP)
    other = session.analyze(build_map(walled_grid(5, 5)))
    assert other.fingerprint != first.fingerprint
    again = session.analyze(SAMPLE_MAP)
    assert again is not first
    assert again.issues == first.issues


def test_invalidate_forces_reanalysis() -> None:
    session = AnalysisSession(AnalysisConfig())
    first = session.analyze(SAMPLE_MAP)
    session.invalidate()
    assert session.analyze(SAMPLE_MAP) is not first


def test_source_label_does_not_split_the_cache() -> None:
    session = AnalysisSession(AnalysisConfig())
    first = session.analyze(SAMPLE_MAP, source="a.dat")
    second = session.analyze(SAMPLE_MAP, source="b.dat")
    assert second.source == "b.dat"
    assert second.issues is first.issues


def test_parse_failure_produces_report_without_statistics() -> None:
    session = AnalysisSession(AnalysisConfig())
    report = session.analyze("tiles{\n1,1,1,\n}\n")
    assert report.statistics is None
    assert [issue.kind for issue in report.issues] == [IssueKind.PARSE]
    assert session.document("tiles{\n1,1,1,\n}\n") is None
    assert session.find_path("tiles{\n1,1,1,\n}\n", (0, 0), (0, 1)) is None


def test_session_paths_walk_or_drill() -> None:
    tiles = walled_grid(3, 5)
    tiles[1][2] = DIRT
    text = build_map(tiles, buildings=[tool_store(1, 1)])
    session = AnalysisSession(AnalysisConfig())
    assert session.find_path(text, (1, 1), (1, 3)) is None
    drilled = session.find_path(text, (1, 1), (1, 3), drill=True)
    assert drilled is not None
    assert drilled.path == [(1, 1), (1, 2), (1, 3)]


def test_analyze_file_uses_path_as_source(tmp_path: Path) -> None:
    path = tmp_path / "level.dat"
    path.write_text(SAMPLE_MAP, encoding="utf-8")
    report = analyze_file(path, session=AnalysisSession(AnalysisConfig()))
    assert report.source == str(path)


def test_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("MINERMAP_TILE_SIZE", "150")
    monkeypatch.setenv("MINERMAP_RESOURCE_LIMIT", "12")
    config = resolve_config()
    assert config.tile_size == 150.0
    assert config.resource_limit == 12


def test_config_ignores_bad_environment_values(monkeypatch) -> None:
    monkeypatch.setenv("MINERMAP_TILE_SIZE", "huge")
    monkeypatch.delenv("MINERMAP_RESOURCE_LIMIT", raising=False)
    config = resolve_config()
    assert config == AnalysisConfig()


def test_explicit_config_overrides_environment(monkeypatch) -> None:
    monkeypatch.setenv("MINERMAP_RESOURCE_LIMIT", "12")
    assert resolve_config(resource_limit=40).resource_limit == 40
