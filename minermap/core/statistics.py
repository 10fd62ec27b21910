"""Map statistics: distributions, difficulty, balance and heatmaps."""

from __future__ import annotations

from collections import Counter
from typing import Callable

from minermap.core.accessibility import analyze_accessibility, centroid, connected_components
from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import (
    AccessibilityResult,
    AccessibilityScore,
    BalanceMetrics,
    DifficultyEstimate,
    DifficultyFactors,
    DifficultyLevel,
    HeatmapKind,
    MapStatistics,
    ResourceCluster,
    ResourceSummary,
    TileCount,
)
from minermap.core.document import (
    BuildingObjective,
    Coordinate,
    DiscoverTileObjective,
    FindMinerObjective,
    MapDocument,
    ResourcesObjective,
    VariableObjective,
)
from minermap.core.errors import CancelToken, check_cancelled
from minermap.core.grid import TileGrid
from minermap.core.heatmap import Splat, build_heatmap
from minermap.core.tiles import Hardness, TileInfo, resolve_tile, tile_name


def tile_distribution(grid: TileGrid) -> list[TileCount]:
    counts = Counter(tile_id for row in grid.tiles for tile_id in row)
    total = grid.size or 1
    distribution = []
    for tile_id, count in counts.most_common():
        tile = resolve_tile(tile_id)
        distribution.append(
            TileCount(
                tile_id=tile_id,
                name=tile_name(tile_id),
                category=tile.category.value if tile else "unknown",
                count=count,
                percentage=count / total * 100,
            )
        )
    return distribution


def resource_yields(doc: MapDocument) -> dict[Coordinate, int]:
    """Combined crystal and ore yield per tile from the resource grids."""
    yields: Counter[Coordinate] = Counter()
    if doc.resources is None:
        return {}
    for values in doc.resources.grids().values():
        for row, cells in enumerate(values):
            for col, value in enumerate(cells):
                if value > 0:
                    yields[(row, col)] += value
    return dict(yields)


def resource_summaries(
    doc: MapDocument, grid: TileGrid, *, cancel: CancelToken | None = None
) -> list[ResourceSummary]:
    if doc.resources is None:
        return []
    summaries = []
    for name, values in doc.resources.grids().items():
        amounts = {
            (row, col): value
            for row, cells in enumerate(values)
            for col, value in enumerate(cells)
            if value > 0
        }
        clusters = [
            ResourceCluster(
                tiles=component,
                total_yield=sum(amounts[tile] for tile in component),
                centroid=centroid(component),
            )
            for component in connected_components(grid, set(amounts), cancel=cancel)
        ]
        total = sum(amounts.values())
        summaries.append(
            ResourceSummary(
                resource=name,
                total=total,
                tile_count=len(amounts),
                average_per_tile=total / len(amounts) if amounts else 0.0,
                clusters=clusters,
            )
        )
    return summaries


def average_path_width(grid: TileGrid, distances: list[list[int]]) -> float:
    """Mean over reachable tiles of the narrower of their two straight runs."""

    def reachable(row: int, col: int) -> bool:
        return grid.in_bounds(row, col) and distances[row][col] >= 0

    def run(row: int, col: int, dr: int, dc: int) -> int:
        length = 1
        for sign in (1, -1):
            r, c = row + dr * sign, col + dc * sign
            while reachable(r, c):
                length += 1
                r, c = r + dr * sign, c + dc * sign
        return length

    widths = [
        min(run(row, col, 0, 1), run(row, col, 1, 0))
        for row, col in grid.coordinates()
        if reachable(row, col)
    ]
    return sum(widths) / len(widths) if widths else 0.0


def accessibility_score(
    accessibility: AccessibilityResult, average_width: float
) -> AccessibilityScore:
    reachable = accessibility.reachable_percentage
    isolated = len(accessibility.isolated_regions)
    chokepoints = len(accessibility.chokepoints)
    overall = reachable - isolated * 5 - chokepoints * 2
    return AccessibilityScore(
        reachable_area=reachable,
        isolated_regions=isolated,
        chokepoints=chokepoints,
        average_path_width=average_width,
        overall_score=max(0.0, min(100.0, overall)),
    )


def tiles_where(grid: TileGrid, predicate: Callable[[TileInfo], bool]) -> list[Coordinate]:
    found = []
    for position in grid.coordinates():
        tile = grid.tile(*position)
        if tile is not None and predicate(tile):
            found.append(position)
    return found


def hazard_tiles(doc: MapDocument, grid: TileGrid) -> set[Coordinate]:
    tiles = set(tiles_where(grid, lambda tile: tile.is_hazard))
    for table in doc.hazard_tables().values():
        tiles.update(tile for tile in table.tiles() if grid.in_bounds(*tile))
    return tiles


def is_reachable_or_adjacent(
    grid: TileGrid, distances: list[list[int]], position: Coordinate
) -> bool:
    for row, col in (position, *grid.neighbors(position)):
        if grid.in_bounds(row, col) and distances[row][col] >= 0:
            return True
    return False


def _resource_availability(
    doc: MapDocument, grid: TileGrid, accessibility: AccessibilityResult
) -> float:
    distances = accessibility.reachability_map
    reachable_yield = sum(
        value
        for position, value in resource_yields(doc).items()
        if is_reachable_or_adjacent(grid, distances, position)
    )
    per_hundred = reachable_yield / (grid.size or 1) * 100
    return min(100.0, per_hundred * 2)


def _drill_difficulty(grid: TileGrid) -> float:
    hardness = [
        int(grid.tile(*position).hardness)
        for position in tiles_where(grid, lambda tile: tile.is_wall)
    ]
    if not hardness:
        return 100.0
    average = sum(hardness) / len(hardness)
    return max(0.0, 100 - average / Hardness.SOLID * 100)


def _objective_complexity(doc: MapDocument) -> float:
    score = 100.0
    for objective in doc.objectives:
        if isinstance(objective, ResourcesObjective):
            for amount in (objective.crystals, objective.ore):
                if amount > 100:
                    score -= 10
                if amount > 200:
                    score -= 10
        elif isinstance(objective, VariableObjective):
            score -= 20
        elif isinstance(
            objective, (DiscoverTileObjective, FindMinerObjective, BuildingObjective)
        ):
            score -= 5
    return max(0.0, score)


def difficulty_level(score: float) -> DifficultyLevel:
    if score > 75:
        return DifficultyLevel.EASY
    if score > 50:
        return DifficultyLevel.MEDIUM
    if score > 25:
        return DifficultyLevel.HARD
    return DifficultyLevel.EXTREME


def estimate_difficulty(
    doc: MapDocument, grid: TileGrid, accessibility: AccessibilityResult
) -> DifficultyEstimate:
    hazard_share = len(hazard_tiles(doc, grid)) / (grid.size or 1) * 100
    factors = DifficultyFactors(
        resource_availability=_resource_availability(doc, grid, accessibility),
        accessible_area=accessibility.reachable_percentage,
        drill_difficulty=_drill_difficulty(grid),
        hazard_density=max(0.0, 100 - hazard_share * 4),
        objective_complexity=_objective_complexity(doc),
    )
    recommendations = []
    if factors.resource_availability < 30:
        recommendations.append("Consider adding more resource deposits")
    if factors.accessible_area < 40:
        recommendations.append("Map may be too restrictive, add more paths")
    if factors.drill_difficulty < 20:
        recommendations.append("High proportion of hard rock may frustrate players")
    if factors.hazard_density < 30:
        recommendations.append("High hazard density, ensure safe zones exist")
    if factors.objective_complexity < 40:
        recommendations.append("Complex objectives, consider adding hints")
    score = factors.average()
    return DifficultyEstimate(
        score=score,
        level=difficulty_level(score),
        factors=factors,
        recommendations=recommendations,
    )


def analyze_balance(
    doc: MapDocument,
    grid: TileGrid,
    accessibility: AccessibilityResult,
    average_width: float,
) -> BalanceMetrics:
    yields = resource_yields(doc)
    resource_count = len(
        set(yields) | set(tiles_where(grid, lambda tile: tile.has_resources))
    )
    hazard_count = len(hazard_tiles(doc, grid))
    open_count = len(grid.passable)
    wall_count = len(tiles_where(grid, lambda tile: tile.is_wall))
    resource_ratio = resource_count / hazard_count if hazard_count else float(resource_count)
    open_ratio = open_count / wall_count if wall_count else float(open_count)
    complexity = (
        len(accessibility.chokepoints) * 5
        + len(accessibility.isolated_regions) * 10
        + (5 - average_width) * 10
    )
    complexity = max(0.0, min(100.0, complexity))

    issues: list[str] = []
    suggestions: list[str] = []
    if resource_ratio < 0.5:
        issues.append("Too many hazards relative to resources")
        suggestions.append("Add more resource deposits or reduce hazards")
    if open_ratio < 0.3:
        issues.append("Map is too cramped")
        suggestions.append("Open up more areas for movement")
    elif open_ratio > 3:
        issues.append("Map may be too open")
        suggestions.append("Add more walls for strategic drilling")
    if complexity > 80:
        issues.append("Path layout is overly complex")
        suggestions.append("Simplify main paths between key areas")
    return BalanceMetrics(
        resource_to_hazard_ratio=resource_ratio,
        open_to_wall_ratio=open_ratio,
        path_complexity=complexity,
        issues=issues,
        suggestions=suggestions,
    )


def build_heatmaps(
    doc: MapDocument,
    grid: TileGrid,
    accessibility: AccessibilityResult,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> dict[HeatmapKind, list[list[int]]]:
    resource: list[Splat] = [
        (row, col, value * 10, config.resource_radius)
        for (row, col), value in resource_yields(doc).items()
    ]
    hazards = hazard_tiles(doc, grid)
    difficulty: list[Splat] = []
    for row, col in grid.coordinates():
        tile = grid.tile(row, col)
        if tile is not None and tile.is_wall:
            difficulty.append((row, col, int(tile.hardness) * 10, config.difficulty_radius))
        if (row, col) in hazards:
            difficulty.append((row, col, 50, config.difficulty_radius))
    access: list[Splat] = [
        (row, col, 100, config.accessibility_radius)
        for row, col in grid.coordinates()
        if accessibility.reachability_map[row][col] >= 0
    ]
    access += [
        (*region.centroid, 50, config.isolated_radius)
        for region in accessibility.isolated_regions
    ]
    return {
        HeatmapKind.RESOURCE: build_heatmap(grid.rows, grid.cols, resource),
        HeatmapKind.DIFFICULTY: build_heatmap(grid.rows, grid.cols, difficulty),
        HeatmapKind.ACCESSIBILITY: build_heatmap(grid.rows, grid.cols, access),
    }


def compute_statistics(
    doc: MapDocument,
    *,
    accessibility: AccessibilityResult | None = None,
    config: AnalysisConfig = DEFAULT_CONFIG,
    cancel: CancelToken | None = None,
) -> MapStatistics:
    grid = TileGrid.from_document(doc, tile_size=config.tile_size)
    if accessibility is None:
        accessibility = analyze_accessibility(doc, config=config, cancel=cancel)
    check_cancelled(cancel)
    width = average_path_width(grid, accessibility.reachability_map)
    check_cancelled(cancel)
    return MapStatistics(
        rows=grid.rows,
        cols=grid.cols,
        tile_distribution=tile_distribution(grid),
        resources=resource_summaries(doc, grid, cancel=cancel),
        accessibility=accessibility_score(accessibility, width),
        difficulty=estimate_difficulty(doc, grid, accessibility),
        balance=analyze_balance(doc, grid, accessibility, width),
        heatmaps=build_heatmaps(doc, grid, accessibility, config),
    )
