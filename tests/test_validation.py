from map_text import GROUND, LAVA, SAMPLE_MAP, SOLID, build_map, tool_store, walled_grid
from minermap.core.contracts import IssueKind, Severity, count_by_severity, has_errors
from minermap.core.parser import parse
from minermap.core.validation import validate, validate_text

S, G = SOLID, GROUND


def _categories(issues) -> set[str]:
    return {issue.category for issue in issues}


def _with_info(text: str, *lines: str) -> str:
    return text.replace("colcount:", "\n".join(lines) + "\ncolcount:", 1)


def test_sample_map_has_no_errors() -> None:
    issues = validate(parse(SAMPLE_MAP))
    assert not has_errors(issues)
    assert "missing tool store" not in _categories(issues)
    assert "resource objective" not in _categories(issues)
    assert "resource balance" not in _categories(issues)


def test_small_open_cave_without_tool_store() -> None:
    issues = validate(parse(build_map(walled_grid(5, 5))))
    counts = count_by_severity(issues)
    assert counts[Severity.ERROR] == 0
    assert "missing tool store" in _categories(issues)
    assert not [issue for issue in issues if issue.kind is IssueKind.STRUCTURAL]


def test_declared_width_mismatch_is_one_structural_error() -> None:
    issues = validate(parse(SAMPLE_MAP.replace("colcount:5", "colcount:6")))
    errors = [issue for issue in issues if issue.severity is Severity.ERROR]
    assert len(errors) == 1
    assert errors[0].kind is IssueKind.STRUCTURAL


def test_fatal_parse_error_becomes_single_issue() -> None:
    issues = validate_text("info{\nrowcount:3\n")
    assert len(issues) == 1
    assert issues[0].kind is IssueKind.PARSE
    assert issues[0].severity is Severity.ERROR
    assert issues[0].line == 1


def test_decode_warnings_surface_as_info() -> None:
    text = _with_info(build_map(walled_grid(5, 5)), "mystery:1")
    issues = validate_text(text)
    decode = [issue for issue in issues if issue.kind is IssueKind.DECODE]
    assert len(decode) == 1
    assert decode[0].severity is Severity.INFO
    assert decode[0].line == 3


def test_info_ranges() -> None:
    text = _with_info(
        build_map(walled_grid(5, 5)),
        "spiderrate:150",
        "spidermin:5",
        "spidermax:2",
        "initialore:-1",
        "opencaves:9,9/",
    )
    issues = [issue for issue in validate(parse(text)) if issue.category == "info range"]
    assert sorted(issue.severity.value for issue in issues) == [
        "error",
        "error",
        "warning",
        "warning",
    ]


def test_tiny_map_is_an_error() -> None:
    issues = validate(parse(build_map([[GROUND, GROUND], [GROUND, GROUND]])))
    assert "map size" in _categories(issues)
    assert has_errors(issues)


def test_entity_outside_grid() -> None:
    doc = parse(build_map(walled_grid(5, 5), buildings=[tool_store(1, 1), tool_store(9, 2)]))
    issues = [issue for issue in validate(doc) if issue.category == "entity bounds"]
    assert len(issues) == 1
    assert issues[0].section == "buildings"
    assert issues[0].line == doc.source.section_line("buildings")


def test_map_without_buildable_ground() -> None:
    tiles = walled_grid(5, 5, inner=14)
    issues = validate(parse(build_map(tiles)))
    assert "no buildable ground" in _categories(issues)


def test_objective_checks() -> None:
    doc = parse(
        build_map(
            walled_grid(5, 5),
            buildings=[tool_store(1, 1)],
            objectives=["discovertile:9,9/Lost", "findminer:4", "resources:500,0,0"],
        )
    )
    issues = validate(doc)
    categories = _categories(issues)
    assert "objective bounds" in categories
    assert "objective target" in categories
    assert "resource objective" in categories
    assert "resource balance" in categories
    bounds = [issue for issue in issues if issue.category == "objective bounds"]
    assert bounds[0].severity is Severity.ERROR


def test_script_checks() -> None:
    script = "\n".join(
        [
            "script{",
            "Start::;",
            "Missing;",
            "Start;",
            "(x>1)Other;",
            "Start::;",
            "msg:hi;",
            "Quiet::;",
            "}",
        ]
    )
    doc = parse(build_map(walled_grid(5, 5), buildings=[tool_store(1, 1)], extra=script))
    messages = [issue.message for issue in validate(doc) if issue.category == "script"]
    assert "event chain 'Start' is defined 2 times" in messages
    assert "call to undefined event chain 'Missing'" in messages
    assert "guard names 'Other' but precedes chain 'Start'" in messages
    assert "event chain 'Quiet' has no commands" in messages
    assert not any("'Start'" in message and "undefined" in message for message in messages)


def test_hazard_table_checks() -> None:
    extra = "landslidefrequency{\n10.0:1,1/9,9/\n20.0:1,1/\n}"
    doc = parse(build_map(walled_grid(5, 5), buildings=[tool_store(1, 1)], extra=extra))
    issues = [issue for issue in validate(doc) if issue.category == "hazard table"]
    assert len(issues) == 2
    assert all(issue.section == "landslidefrequency" for issue in issues)


def test_isolated_resources_and_unreachable_objective() -> None:
    tiles = walled_grid(5, 9)
    for row in range(5):
        tiles[row][4] = SOLID
    crystals = [[0] * 9 for _ in range(5)]
    crystals[2][6] = 3
    doc = parse(
        build_map(
            tiles,
            crystals=crystals,
            buildings=[tool_store(2, 2)],
            objectives=["discovertile:2,6/Far cave"],
        )
    )
    issues = validate(doc)
    isolated = [issue for issue in issues if issue.category == "isolated region"]
    assert len(isolated) == 1
    assert isolated[0].severity is Severity.WARNING
    unreachable = [issue for issue in issues if issue.category == "unreachable objective"]
    assert len(unreachable) == 1
    assert "Far cave" in unreachable[0].message


def test_chokepoint_beside_lava_is_an_erosion_risk() -> None:
    tiles = [
        [S, S, S, S, S, S, S],
        [S, G, G, LAVA, G, G, S],
        [S, G, G, G, G, G, S],
        [S, G, G, S, G, G, S],
        [S, S, S, S, S, S, S],
    ]
    doc = parse(
        build_map(
            tiles,
            buildings=[tool_store(2, 1)],
            objectives=["discovertile:2,5/Far room"],
        )
    )
    issues = validate(doc)
    categories = _categories(issues)
    assert "erosion risk" in categories
    assert "chokepoint" in categories


def test_objective_touching_reachable_tiles_only_diagonally_is_unreachable() -> None:
    doc = parse(
        build_map(
            walled_grid(5, 5),
            buildings=[tool_store(1, 1)],
            objectives=["discovertile:0,0/Corner", "discovertile:0,1/Edge"],
        )
    )
    unreachable = [
        issue for issue in validate(doc) if issue.category == "unreachable objective"
    ]
    assert [issue.message.split(" at ")[0] for issue in unreachable] == ["Corner"]


def test_infinite_coordinates_are_dropped_before_validation() -> None:
    building = tool_store(1, 1).replace("X=450.000", "X=1e999")
    doc = parse(build_map(walled_grid(5, 5), buildings=[building]))
    assert doc.buildings == []
    assert any("invalid coordinates" in warning.message for warning in doc.warnings)
    assert "missing tool store" in _categories(validate(doc))
