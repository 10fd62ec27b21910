from map_text import SAMPLE_MAP, build_map, walled_grid
from minermap.core.contracts import IssueKind, Severity
from minermap.core.grid_validator import (
    GRID_MISMATCH,
    HEIGHT_MISMATCH,
    measured_shape,
    validate_grids,
)
from minermap.core.parser import parse


def _structural(issues):
    return [issue for issue in issues if issue.kind is IssueKind.STRUCTURAL]


def test_sample_map_has_consistent_grids() -> None:
    assert validate_grids(parse(SAMPLE_MAP)) == []


def test_measured_shape() -> None:
    assert measured_shape([[1, 1], [1, 1], [1, 1]]) == (3, 2)
    assert measured_shape([[1, 1], [1]]) is None
    assert measured_shape([]) == (0, 0)


def test_declared_column_mismatch_reports_one_issue() -> None:
    text = SAMPLE_MAP.replace("colcount:5", "colcount:6")
    issues = _structural(validate_grids(parse(text)))
    assert len(issues) == 1
    assert issues[0].category == GRID_MISMATCH
    assert issues[0].severity is Severity.ERROR
    assert issues[0].section == "tiles"
    assert issues[0].line == 12


def test_ragged_rows_are_reported_per_row() -> None:
    tiles = [[1, 1, 1], [1, 1], [1, 1, 1]]
    issues = _structural(validate_grids(parse(build_map(tiles, colcount=3))))
    assert len(issues) == 1
    assert issues[0].category == GRID_MISMATCH
    assert issues[0].line == 7
    assert "row 1" in issues[0].message


def test_height_must_be_one_larger_than_tiles() -> None:
    tiles = walled_grid(4, 4)
    text = build_map(tiles, height=[[0] * 4 for _ in range(4)])
    issues = _structural(validate_grids(parse(text)))
    assert [issue.category for issue in issues] == [HEIGHT_MISMATCH]


def test_tile_ids_out_of_range_and_unknown() -> None:
    tiles = walled_grid(4, 4)
    tiles[1][1] = 200
    tiles[1][2] = 200
    tiles[2][1] = 54
    issues = validate_grids(parse(build_map(tiles)))

    out_of_range = [issue for issue in issues if issue.category == "tile id out of range"]
    assert len(out_of_range) == 1
    assert out_of_range[0].severity is Severity.ERROR
    assert out_of_range[0].column == 2
    assert "2 tiles" in out_of_range[0].message

    unknown = [issue for issue in issues if issue.category == "unknown tile id"]
    assert len(unknown) == 1
    assert unknown[0].severity is Severity.WARNING


def test_resource_values_are_semantic() -> None:
    tiles = walled_grid(4, 4)
    crystals = [[0] * 4 for _ in range(4)]
    crystals[1][1] = -2
    crystals[2][2] = 99
    issues = validate_grids(parse(build_map(tiles, crystals=crystals)))
    categories = {issue.category: issue for issue in issues}
    assert categories["negative resource"].severity is Severity.ERROR
    assert categories["negative resource"].kind is IssueKind.SEMANTIC
    assert categories["resource density"].severity is Severity.WARNING
    assert not _structural(issues)


def test_resource_grid_shape_follows_tiles() -> None:
    tiles = walled_grid(4, 4)
    crystals = [[0] * 3 for _ in range(4)]
    issues = _structural(validate_grids(parse(build_map(tiles, crystals=crystals))))
    assert len(issues) == 1
    assert issues[0].section == "resources"


def test_border_heights_warn() -> None:
    tiles = walled_grid(3, 3)
    height = [[0] * 4 for _ in range(4)]
    height[0][2] = 50
    height[3][3] = 10
    issues = validate_grids(parse(build_map(tiles, height=height)))
    assert len(issues) == 1
    assert issues[0].category == "border height"
    assert issues[0].kind is IssueKind.SEMANTIC
    assert "2 border height values" in issues[0].message


def test_blocks_values_must_be_binary() -> None:
    tiles = walled_grid(3, 3)
    text = build_map(tiles, extra="blocks{\n0,0,0,\n0,2,0,\n0,0,0,\n}")
    issues = validate_grids(parse(text))
    assert [issue.category for issue in issues] == ["blocks value"]
