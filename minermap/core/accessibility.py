"""Reachability, isolated regions, chokepoints and critical paths."""

from __future__ import annotations

from collections import deque

from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import AccessibilityResult, CriticalPath, IsolatedRegion
from minermap.core.document import (
    TOOL_STORE,
    Coordinate,
    DiscoverTileObjective,
    MapDocument,
)
from minermap.core.errors import CancelToken, check_cancelled
from minermap.core.grid import TileGrid, entity_tiles
from minermap.core.pathfinding import PathFinder

MISSION_CRITICAL_BUILDINGS = (
    "BuildingDocks_C",
    "BuildingSuperTeleport_C",
    "BuildingGeodesicPowerStation_C",
    "BuildingMiningLaser_C",
)


def default_seeds(
    doc: MapDocument, grid: TileGrid, config: AnalysisConfig = DEFAULT_CONFIG
) -> list[Coordinate]:
    """Tool Stores and miners, else open caves, else the main cave's centre."""
    seeds = entity_tiles(doc, TOOL_STORE, config.tile_size)
    seeds += [miner.transform.tile(config.tile_size) for miner in doc.miners]
    if not seeds:
        seeds = list(doc.info.opencaves)
    if not seeds:
        components = connected_components(grid, set(grid.passable))
        if components:
            largest = max(components, key=len)
            seeds = [_closest_to_centroid(largest)]
    return list(dict.fromkeys(seeds))


def reachability_map(
    grid: TileGrid,
    seeds: list[Coordinate],
    *,
    cancel: CancelToken | None = None,
) -> list[list[int]]:
    """Multi-source BFS distances over passable tiles; -1 when unreachable."""
    distances = [[-1] * len(row) for row in grid.tiles]
    queue: deque[Coordinate] = deque()
    for row, col in seeds:
        if grid.is_passable(row, col) and distances[row][col] < 0:
            distances[row][col] = 0
            queue.append((row, col))

    while queue:
        check_cancelled(cancel)
        current = queue.popleft()
        distance = distances[current[0]][current[1]]
        for row, col in grid.passable_neighbors(current):
            if distances[row][col] < 0:
                distances[row][col] = distance + 1
                queue.append((row, col))
    return distances


def connected_components(
    grid: TileGrid,
    tiles: set[Coordinate],
    *,
    cancel: CancelToken | None = None,
) -> list[list[Coordinate]]:
    """4-connected components of ``tiles`` in row-major discovery order."""
    seen: set[Coordinate] = set()
    components: list[list[Coordinate]] = []
    for start in sorted(tiles):
        if start in seen:
            continue
        check_cancelled(cancel)
        seen.add(start)
        component = [start]
        queue: deque[Coordinate] = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in grid.neighbors(current):
                if neighbor in tiles and neighbor not in seen:
                    seen.add(neighbor)
                    component.append(neighbor)
                    queue.append(neighbor)
        components.append(sorted(component))
    return components


def centroid(tiles: list[Coordinate]) -> tuple[float, float]:
    return (
        sum(row for row, _ in tiles) / len(tiles),
        sum(col for _, col in tiles) / len(tiles),
    )


def _closest_to_centroid(tiles: list[Coordinate]) -> Coordinate:
    center_row, center_col = centroid(tiles)
    return min(
        tiles,
        key=lambda tile: ((tile[0] - center_row) ** 2 + (tile[1] - center_col) ** 2, tile),
    )


def find_chokepoints(grid: TileGrid, distances: list[list[int]]) -> list[Coordinate]:
    """Reachable tiles whose only reachable neighbours are two opposite ones."""

    def reachable(row: int, col: int) -> bool:
        return grid.in_bounds(row, col) and distances[row][col] >= 0

    chokepoints: list[Coordinate] = []
    for row, col in grid.coordinates():
        if not reachable(row, col):
            continue
        north, south = reachable(row - 1, col), reachable(row + 1, col)
        west, east = reachable(row, col - 1), reachable(row, col + 1)
        if north + south + west + east != 2:
            continue
        if (north and south) or (west and east):
            chokepoints.append((row, col))
    return chokepoints


def tile_has_resources(doc: MapDocument, grid: TileGrid, position: Coordinate) -> bool:
    row, col = position
    tile = grid.tile(row, col)
    if tile is not None and tile.has_resources:
        return True
    if doc.resources is None:
        return False
    for values in doc.resources.grids().values():
        if row < len(values) and col < len(values[row]) and values[row][col] > 0:
            return True
    return False


def objective_locations(
    doc: MapDocument, grid: TileGrid, config: AnalysisConfig = DEFAULT_CONFIG
) -> list[tuple[str, Coordinate]]:
    locations: list[tuple[str, Coordinate]] = []
    for objective in doc.objectives:
        if isinstance(objective, DiscoverTileObjective):
            label = objective.description or f"discover tile {objective.row},{objective.col}"
            locations.append((label, (objective.row, objective.col)))
    for building in doc.buildings:
        if building.type in MISSION_CRITICAL_BUILDINGS:
            locations.append((building.type, building.transform.tile(config.tile_size)))
    return [(label, tile) for label, tile in locations if grid.in_bounds(*tile)]


def is_location_reachable(
    grid: TileGrid, distances: list[list[int]], position: Coordinate
) -> bool:
    """True when the tile or one of its four neighbours is reachable."""
    row, col = position
    if grid.in_bounds(row, col) and distances[row][col] >= 0:
        return True
    return any(distances[r][c] >= 0 for r, c in grid.neighbors(position))


def _approach_tile(
    grid: TileGrid, distances: list[list[int]], target: Coordinate
) -> Coordinate | None:
    if grid.is_passable(*target):
        return target
    options = [
        (distances[row][col], (row, col))
        for row, col in grid.neighbors(target)
        if distances[row][col] >= 0
    ]
    return min(options)[1] if options else None


def critical_paths(
    doc: MapDocument,
    grid: TileGrid,
    seeds: list[Coordinate],
    distances: list[list[int]],
    chokepoints: list[Coordinate],
    *,
    config: AnalysisConfig = DEFAULT_CONFIG,
    cancel: CancelToken | None = None,
) -> list[CriticalPath]:
    finder = PathFinder(grid)
    chokepoint_set = set(chokepoints)
    paths: list[CriticalPath] = []
    for seed in seeds:
        for label, target in objective_locations(doc, grid, config):
            approach = _approach_tile(grid, distances, target)
            result = (
                finder.find_path(seed, approach, cancel=cancel)
                if approach is not None
                else None
            )
            bottlenecks = (
                [tile for tile in result.path if tile in chokepoint_set] if result else []
            )
            paths.append(
                CriticalPath(
                    label=label,
                    start=seed,
                    target=target,
                    path=result,
                    bottlenecks=bottlenecks,
                )
            )
    return paths


def analyze_accessibility(
    doc: MapDocument,
    seeds: list[Coordinate] | None = None,
    *,
    config: AnalysisConfig = DEFAULT_CONFIG,
    cancel: CancelToken | None = None,
) -> AccessibilityResult:
    grid = TileGrid.from_document(doc, tile_size=config.tile_size)
    if seeds is None:
        seeds = default_seeds(doc, grid, config)
    usable = [seed for seed in seeds if grid.is_passable(*seed)]
    ignored = [seed for seed in seeds if not grid.is_passable(*seed)]

    distances = reachability_map(grid, usable, cancel=cancel)
    unreachable = sorted(
        tile for tile in grid.passable if distances[tile[0]][tile[1]] < 0
    )
    regions = [
        IsolatedRegion(
            tiles=component,
            size=len(component),
            centroid=centroid(component),
            has_resources=_region_has_resources(doc, grid, component),
        )
        for component in connected_components(grid, set(unreachable), cancel=cancel)
    ]
    chokepoints = find_chokepoints(grid, distances)
    paths = critical_paths(
        doc, grid, usable, distances, chokepoints, config=config, cancel=cancel
    )
    return AccessibilityResult(
        reachability_map=distances,
        seeds=usable,
        ignored_seeds=ignored,
        unreachable_areas=unreachable,
        isolated_regions=regions,
        chokepoints=chokepoints,
        critical_paths=paths,
        passable_tiles=len(grid.passable),
        reachable_tiles=len(grid.passable) - len(unreachable),
    )


def _region_has_resources(
    doc: MapDocument, grid: TileGrid, component: list[Coordinate]
) -> bool:
    for position in component:
        if tile_has_resources(doc, grid, position):
            return True
        for neighbor in grid.neighbors(position):
            if tile_has_resources(doc, grid, neighbor):
                return True
    return False
