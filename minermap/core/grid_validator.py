"""Shape and value checks for the tiles, height, resource and blocks grids."""

from __future__ import annotations

from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import Issue, IssueKind, Severity
from minermap.core.document import Coordinate, MapDocument
from minermap.core.tiles import MAX_TILE_ID, MIN_TILE_ID, in_id_range, resolve_tile

GRID_MISMATCH = "grid dimension mismatch"
HEIGHT_MISMATCH = "height dimension mismatch"


def measured_shape(grid: list[list[int]]) -> tuple[int, int] | None:
    """(rows, cols) of a rectangular grid, or None when rows differ in width."""
    widths = {len(row) for row in grid}
    if len(widths) > 1:
        return None
    return len(grid), next(iter(widths), 0)


def reference_shape(doc: MapDocument) -> tuple[int, int]:
    return measured_shape(doc.tiles) or doc.declared_shape


def validate_grids(
    doc: MapDocument, config: AnalysisConfig = DEFAULT_CONFIG
) -> list[Issue]:
    issues = _check_shape(doc, "tiles", doc.tiles, doc.declared_shape, GRID_MISMATCH)
    issues += _check_tile_ids(doc)

    rows, cols = reference_shape(doc)
    if doc.resources is not None:
        for name, values in doc.resources.grids().items():
            key = f"resources.{name}"
            issues += _check_shape(doc, key, values, (rows, cols), GRID_MISMATCH)
            issues += _check_resource_values(doc, key, values, config)
    if doc.blocks is not None:
        issues += _check_shape(doc, "blocks", doc.blocks, (rows, cols), GRID_MISMATCH)
        issues += _check_blocks(doc)
    issues += _check_shape(
        doc, "height", doc.height, (rows + 1, cols + 1), HEIGHT_MISMATCH
    )
    issues += _check_border_heights(doc)
    return issues


def _check_shape(
    doc: MapDocument,
    key: str,
    grid: list[list[int]],
    expected: tuple[int, int],
    category: str,
) -> list[Issue]:
    section = key.split(".")[0]
    expected_rows, expected_cols = expected
    shape = measured_shape(grid)
    if shape is not None:
        if shape == expected:
            return []
        return [
            Issue(
                severity=Severity.ERROR,
                kind=IssueKind.STRUCTURAL,
                category=category,
                message=(
                    f"{key} grid is {shape[0]}x{shape[1]} "
                    f"but {expected_rows}x{expected_cols} was expected"
                ),
                line=doc.source.section_line(section),
                section=section,
            )
        ]

    issues = [
        Issue(
            severity=Severity.ERROR,
            kind=IssueKind.STRUCTURAL,
            category=category,
            message=f"{key} row {index} has {len(row)} values, expected {expected_cols}",
            line=doc.source.row_line(key, index),
            section=section,
        )
        for index, row in enumerate(grid)
        if len(row) != expected_cols
    ]
    if len(grid) != expected_rows:
        issues.append(
            Issue(
                severity=Severity.ERROR,
                kind=IssueKind.STRUCTURAL,
                category=category,
                message=f"{key} grid has {len(grid)} rows, expected {expected_rows}",
                line=doc.source.section_line(section),
                section=section,
            )
        )
    return issues


def _first_occurrences(
    grid: list[list[int]], predicate
) -> dict[int, tuple[Coordinate, int]]:
    found: dict[int, tuple[Coordinate, int]] = {}
    for row, cells in enumerate(grid):
        for col, value in enumerate(cells):
            if not predicate(value):
                continue
            position, count = found.get(value, ((row, col), 0))
            found[value] = (position, count + 1)
    return found


def _check_tile_ids(doc: MapDocument) -> list[Issue]:
    issues = []
    out_of_range = _first_occurrences(doc.tiles, lambda value: not in_id_range(value))
    for value, ((row, col), count) in out_of_range.items():
        issues.append(
            Issue(
                severity=Severity.ERROR,
                kind=IssueKind.STRUCTURAL,
                category="tile id out of range",
                message=(
                    f"tile id {value} at ({row}, {col}) is outside "
                    f"{MIN_TILE_ID}-{MAX_TILE_ID} ({count} tiles)"
                ),
                line=doc.source.row_line("tiles", row),
                column=col + 1,
                section="tiles",
            )
        )
    unknown = _first_occurrences(
        doc.tiles, lambda value: in_id_range(value) and resolve_tile(value) is None
    )
    for value, ((row, col), count) in unknown.items():
        issues.append(
            Issue(
                severity=Severity.WARNING,
                kind=IssueKind.STRUCTURAL,
                category="unknown tile id",
                message=f"unknown tile id {value} at ({row}, {col}) ({count} tiles)",
                line=doc.source.row_line("tiles", row),
                column=col + 1,
                section="tiles",
            )
        )
    return issues


def _aggregate_cells(
    grid: list[list[int]], predicate
) -> tuple[Coordinate | None, int]:
    first: Coordinate | None = None
    count = 0
    for row, cells in enumerate(grid):
        for col, value in enumerate(cells):
            if predicate(row, col, value):
                count += 1
                if first is None:
                    first = (row, col)
    return first, count


def _check_resource_values(
    doc: MapDocument, key: str, grid: list[list[int]], config: AnalysisConfig
) -> list[Issue]:
    issues = []
    first, count = _aggregate_cells(grid, lambda row, col, value: value < 0)
    if first is not None:
        issues.append(
            Issue(
                severity=Severity.ERROR,
                kind=IssueKind.SEMANTIC,
                category="negative resource",
                message=f"{key} has {count} negative values, first at {first}",
                line=doc.source.row_line(key, first[0]),
                column=first[1] + 1,
                section="resources",
            )
        )
    limit = config.resource_limit
    first, count = _aggregate_cells(grid, lambda row, col, value: value > limit)
    if first is not None:
        issues.append(
            Issue(
                severity=Severity.WARNING,
                kind=IssueKind.SEMANTIC,
                category="resource density",
                message=(
                    f"{key} has {count} tiles above {limit} per tile, first at {first}"
                ),
                line=doc.source.row_line(key, first[0]),
                column=first[1] + 1,
                section="resources",
            )
        )
    return issues


def _check_blocks(doc: MapDocument) -> list[Issue]:
    first, count = _aggregate_cells(
        doc.blocks or [], lambda row, col, value: value not in (0, 1)
    )
    if first is None:
        return []
    return [
        Issue(
            severity=Severity.ERROR,
            kind=IssueKind.SEMANTIC,
            category="blocks value",
            message=f"blocks grid has {count} values other than 0 or 1, first at {first}",
            line=doc.source.row_line("blocks", first[0]),
            column=first[1] + 1,
            section="blocks",
        )
    ]


def _check_border_heights(doc: MapDocument) -> list[Issue]:
    last_row = len(doc.height) - 1

    def on_border(row: int, col: int, value: int) -> bool:
        edge = row in (0, last_row) or col in (0, len(doc.height[row]) - 1)
        return edge and value != 0

    first, count = _aggregate_cells(doc.height, on_border)
    if first is None:
        return []
    return [
        Issue(
            severity=Severity.WARNING,
            kind=IssueKind.SEMANTIC,
            category="border height",
            message=f"{count} border height values are not 0, first at {first}",
            line=doc.source.row_line("height", first[0]),
            column=first[1] + 1,
            section="height",
        )
    ]
