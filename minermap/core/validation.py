"""Aggregate structural, semantic and decode findings into one issue list."""

from __future__ import annotations

import re
from collections import Counter

from minermap.core.accessibility import (
    analyze_accessibility,
    is_location_reachable,
    objective_locations,
)
from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import AccessibilityResult, Issue, IssueKind, Severity
from minermap.core.document import (
    TOOL_STORE,
    BuildingObjective,
    DiscoverTileObjective,
    FindMinerObjective,
    MapDocument,
    ResourcesObjective,
)
from minermap.core.errors import CancelToken, ParseError, check_cancelled
from minermap.core.grid import TileGrid
from minermap.core.grid_validator import reference_shape, validate_grids
from minermap.core.parser import parse
from minermap.core.statistics import (
    analyze_balance,
    average_path_width,
    is_reachable_or_adjacent,
    tiles_where,
)

CALL_PATTERN = re.compile(r"^(\w+);$")


def _issue(
    severity: Severity,
    category: str,
    message: str,
    *,
    kind: IssueKind = IssueKind.SEMANTIC,
    line: int | None = None,
    section: str | None = None,
) -> Issue:
    return Issue(
        severity=severity,
        kind=kind,
        category=category,
        message=message,
        line=line,
        section=section,
    )


def validate(
    doc: MapDocument,
    *,
    accessibility: AccessibilityResult | None = None,
    config: AnalysisConfig = DEFAULT_CONFIG,
    cancel: CancelToken | None = None,
) -> list[Issue]:
    """Run every check over ``doc`` and return the issues in check order."""
    issues = decode_issues(doc)
    issues += validate_grids(doc, config)
    issues += check_info(doc, config)
    issues += check_entities(doc, config)
    issues += check_objectives(doc, config)
    issues += check_script(doc)
    issues += check_hazard_tables(doc)
    check_cancelled(cancel)
    if accessibility is None:
        accessibility = analyze_accessibility(doc, config=config, cancel=cancel)
    issues += check_accessibility(doc, accessibility, config)
    issues += check_balance(doc, accessibility, config)
    return issues


def validate_text(
    text: str,
    *,
    config: AnalysisConfig = DEFAULT_CONFIG,
    cancel: CancelToken | None = None,
) -> list[Issue]:
    """Parse and validate; a fatal parse error becomes the only issue."""
    try:
        doc = parse(text)
    except ParseError as exc:
        return [parse_error_issue(exc)]
    return validate(doc, config=config, cancel=cancel)


def parse_error_issue(exc: ParseError) -> Issue:
    return _issue(
        Severity.ERROR,
        "parse",
        exc.message,
        kind=IssueKind.PARSE,
        line=exc.line,
        section=exc.section,
    )


def decode_issues(doc: MapDocument) -> list[Issue]:
    return [
        _issue(
            Severity.INFO,
            "decode",
            warning.message,
            kind=IssueKind.DECODE,
            line=warning.line,
            section=warning.section,
        )
        for warning in doc.warnings
    ]


def check_info(doc: MapDocument, config: AnalysisConfig) -> list[Issue]:
    info = doc.info
    line = doc.source.section_line("info")
    issues: list[Issue] = []

    def add(severity: Severity, category: str, message: str) -> None:
        issues.append(_issue(severity, category, message, line=line, section="info"))

    for key, value in (("rowcount", info.rowcount), ("colcount", info.colcount)):
        if value < config.min_map_size:
            add(Severity.ERROR, "map size", f"{key} {value} is below {config.min_map_size}")
        elif value > config.large_map_limit:
            add(
                Severity.WARNING,
                "map size",
                f"{key} {value} exceeds {config.large_map_limit} and may perform poorly",
            )
    if info.spiderrate is not None and not 0 <= info.spiderrate <= 100:
        add(Severity.ERROR, "info range", f"spiderrate {info.spiderrate} is not 0-100")
    if (
        info.spidermin is not None
        and info.spidermax is not None
        and info.spidermin > info.spidermax
    ):
        add(Severity.WARNING, "info range", "spidermin is greater than spidermax")
    for key in ("oxygen", "initialcrystals", "initialore"):
        value = getattr(info, key)
        if value is not None and value < 0:
            add(Severity.ERROR, "info range", f"{key} cannot be negative ({value})")
    rows, cols = reference_shape(doc)
    for row, col in info.opencaves:
        if not (0 <= row < rows and 0 <= col < cols):
            add(Severity.WARNING, "info range", f"open cave ({row}, {col}) is outside the grid")
    return issues


def check_entities(doc: MapDocument, config: AnalysisConfig) -> list[Issue]:
    rows, cols = reference_shape(doc)
    issues = []
    for section, entity in doc.entities():
        row, col = entity.transform.tile(config.tile_size)
        if 0 <= row < rows and 0 <= col < cols:
            continue
        position = entity.transform.translation
        issues.append(
            _issue(
                Severity.WARNING,
                "entity bounds",
                f"{entity.type} at ({position.x}, {position.y}) maps to tile "
                f"({row}, {col}) outside the {rows}x{cols} grid",
                line=doc.source.section_line(section),
                section=section,
            )
        )
    grid = TileGrid.from_document(doc, tile_size=config.tile_size)
    if not tiles_where(grid, lambda tile: tile.buildable):
        issues.append(
            _issue(
                Severity.WARNING,
                "no buildable ground",
                "map has no buildable ground tiles",
                line=doc.source.section_line("tiles"),
                section="tiles",
            )
        )
    return issues


def _available(doc: MapDocument, resource: str) -> int:
    total = 0
    if doc.resources is not None:
        grid = doc.resources.grids().get(resource) or []
        total += sum(value for row in grid for value in row if value > 0)
    initial = doc.info.initialcrystals if resource == "crystals" else doc.info.initialore
    total += initial or 0
    tile_field = "crystal_yield" if resource == "crystals" else "ore_yield"
    grid_view = TileGrid.from_tiles(doc.tiles)
    for position in grid_view.coordinates():
        tile = grid_view.tile(*position)
        if tile is not None:
            total += getattr(tile, tile_field)
    return total


def check_objectives(doc: MapDocument, config: AnalysisConfig) -> list[Issue]:
    rows, cols = reference_shape(doc)
    line = doc.source.section_line("objectives")
    miner_ids = {miner.properties.get("ID") for miner in doc.miners}
    issues: list[Issue] = []

    def add(severity: Severity, category: str, message: str) -> None:
        issues.append(
            _issue(severity, category, message, line=line, section="objectives")
        )

    for objective in doc.objectives:
        if isinstance(objective, DiscoverTileObjective):
            if not (0 <= objective.row < rows and 0 <= objective.col < cols):
                add(
                    Severity.ERROR,
                    "objective bounds",
                    f"discover tile ({objective.row}, {objective.col}) is outside "
                    f"the {rows}x{cols} grid",
                )
        elif isinstance(objective, ResourcesObjective):
            for resource, required in (
                ("crystals", objective.crystals),
                ("ore", objective.ore),
            ):
                available = _available(doc, resource)
                if required > available:
                    add(
                        Severity.WARNING,
                        "resource objective",
                        f"objective requires {required} {resource} "
                        f"but the map holds {available}",
                    )
        elif isinstance(objective, FindMinerObjective):
            if objective.miner_id not in miner_ids:
                add(
                    Severity.WARNING,
                    "objective target",
                    f"no miner has ID={objective.miner_id}",
                )
        elif isinstance(objective, BuildingObjective):
            if not objective.building.startswith("Building"):
                add(
                    Severity.WARNING,
                    "objective target",
                    f"'{objective.building}' is not a building type",
                )
    return issues


def check_script(doc: MapDocument) -> list[Issue]:
    script = doc.script
    if script is None:
        return []
    issues: list[Issue] = []
    names = Counter(chain.name for chain in script.events)
    for name, count in names.items():
        if count > 1:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "script",
                    f"event chain '{name}' is defined {count} times",
                    section="script",
                )
            )
    for chain in script.events:
        if chain.guard_target is not None and chain.guard_target != chain.name:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "script",
                    f"guard names '{chain.guard_target}' but precedes chain '{chain.name}'",
                    line=chain.line,
                    section="script",
                )
            )
        if not chain.commands:
            issues.append(
                _issue(
                    Severity.INFO,
                    "script",
                    f"event chain '{chain.name}' has no commands",
                    line=chain.line,
                    section="script",
                )
            )
    commands = list(script.preamble)
    for chain in script.events:
        commands.extend(chain.commands)
    for command in commands:
        if not command.opaque:
            continue
        call = CALL_PATTERN.match(command.command)
        if call and call.group(1) not in names and call.group(1) not in script.variables:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "script",
                    f"call to undefined event chain '{call.group(1)}'",
                    line=command.line,
                    section="script",
                )
            )
    return issues


def check_hazard_tables(doc: MapDocument) -> list[Issue]:
    rows, cols = reference_shape(doc)
    issues: list[Issue] = []
    for name, table in doc.hazard_tables().items():
        line = doc.source.section_line(name)
        seen: dict[tuple[int, int], float] = {}
        for entry in table.entries:
            for row, col in entry.tiles:
                if not (0 <= row < rows and 0 <= col < cols):
                    issues.append(
                        _issue(
                            Severity.WARNING,
                            "hazard table",
                            f"{name} tile ({row}, {col}) is outside the grid",
                            line=line,
                            section=name,
                        )
                    )
                previous = seen.setdefault((row, col), entry.interval)
                if previous != entry.interval:
                    issues.append(
                        _issue(
                            Severity.WARNING,
                            "hazard table",
                            f"{name} tile ({row}, {col}) is listed under intervals "
                            f"{previous} and {entry.interval}",
                            line=line,
                            section=name,
                        )
                    )
    return issues


def check_accessibility(
    doc: MapDocument, accessibility: AccessibilityResult, config: AnalysisConfig
) -> list[Issue]:
    grid = TileGrid.from_document(doc, tile_size=config.tile_size)
    distances = accessibility.reachability_map
    issues: list[Issue] = []

    if not doc.buildings_of_type(TOOL_STORE):
        issues.append(
            _issue(
                Severity.WARNING,
                "missing tool store",
                "map has no Tool Store; reachability uses fallback start positions",
                line=doc.source.section_line("buildings"),
                section="buildings",
            )
        )
    for row, col in accessibility.ignored_seeds:
        issues.append(
            _issue(
                Severity.WARNING,
                "start position",
                f"start position ({row}, {col}) is not on a passable tile",
            )
        )
    for label, position in objective_locations(doc, grid, config):
        if not is_location_reachable(grid, distances, position):
            issues.append(
                _issue(
                    Severity.WARNING,
                    "unreachable objective",
                    f"{label} at {position} cannot be reached from the start",
                    section="objectives",
                )
            )

    quiet_regions = [
        region for region in accessibility.isolated_regions if not region.has_resources
    ]
    for region in accessibility.isolated_regions:
        if region.has_resources:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "isolated region",
                    f"isolated region of {region.size} tiles near "
                    f"({region.tiles[0][0]}, {region.tiles[0][1]}) holds resources "
                    "that cannot be reached",
                )
            )
    if quiet_regions:
        issues.append(
            _issue(
                Severity.INFO,
                "isolated region",
                f"{len(quiet_regions)} isolated regions "
                f"({sum(region.size for region in quiet_regions)} tiles) cannot be reached",
            )
        )

    for path in accessibility.critical_paths:
        if path.path is None:
            continue
        for row, col in path.bottlenecks:
            issues.append(
                _issue(
                    Severity.INFO,
                    "chokepoint",
                    f"path to {path.label} passes a one-tile chokepoint at ({row}, {col})",
                )
            )

    fluids = set(tiles_where(grid, lambda tile: tile.fluid))
    for row, col in accessibility.chokepoints:
        adjacent = {
            (row + dr, col + dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1)
        }
        if adjacent & fluids:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "erosion risk",
                    f"chokepoint at ({row}, {col}) borders lava or water and could be cut off",
                )
            )

    required = sum(
        objective.crystals
        for objective in doc.objectives
        if isinstance(objective, ResourcesObjective)
    )
    if required:
        reachable = doc.info.initialcrystals or 0
        crystals = doc.resources.crystals if doc.resources else None
        for row, cells in enumerate(crystals or []):
            for col, value in enumerate(cells):
                if value > 0 and is_reachable_or_adjacent(grid, distances, (row, col)):
                    reachable += value
        for position in tiles_where(grid, lambda tile: tile.crystal_yield > 0):
            if is_reachable_or_adjacent(grid, distances, position):
                reachable += grid.tile(*position).crystal_yield
        if reachable < required:
            issues.append(
                _issue(
                    Severity.WARNING,
                    "resource balance",
                    f"only {reachable} crystals are reachable but objectives "
                    f"require {required}",
                    section="objectives",
                )
            )
    return issues


def check_balance(
    doc: MapDocument, accessibility: AccessibilityResult, config: AnalysisConfig
) -> list[Issue]:
    grid = TileGrid.from_document(doc, tile_size=config.tile_size)
    width = average_path_width(grid, accessibility.reachability_map)
    balance = analyze_balance(doc, grid, accessibility, width)
    return [
        _issue(Severity.INFO, "balance", f"{issue}. {suggestion}")
        for issue, suggestion in zip(balance.issues, balance.suggestions)
    ]
