from map_text import CRYSTAL_SEAM, GROUND, SOLID, build_map, tool_store, walled_grid
from minermap.core.accessibility import (
    analyze_accessibility,
    connected_components,
    default_seeds,
    is_location_reachable,
)
from minermap.core.grid import TileGrid
from minermap.core.parser import parse

S, G = SOLID, GROUND

TWO_ROOMS = [
    [S, S, S, S, S, S, S],
    [S, G, G, S, G, G, S],
    [S, G, G, G, G, G, S],
    [S, G, G, S, G, G, S],
    [S, S, S, S, S, S, S],
]


def _building(kind: str, row: int, col: int) -> str:
    return tool_store(row, col).replace("BuildingToolStore_C", kind)


def _split_cave() -> list[list[int]]:
    tiles = walled_grid(5, 9)
    for row in range(5):
        tiles[row][4] = SOLID
    tiles[2][7] = CRYSTAL_SEAM
    return tiles


def test_reachable_and_isolated_tiles_partition_passable_tiles() -> None:
    doc = parse(build_map(_split_cave(), buildings=[tool_store(2, 2)]))
    result = analyze_accessibility(doc)
    grid = TileGrid.from_document(doc)

    reachable = {tile for tile in grid.passable if result.is_reachable(tile)}
    isolated = {tile for region in result.isolated_regions for tile in region.tiles}
    assert reachable.isdisjoint(isolated)
    assert reachable | isolated == set(grid.passable)
    assert set(result.unreachable_areas) == isolated
    assert result.passable_tiles == len(grid.passable)
    assert result.reachable_tiles == len(reachable) == 9


def test_isolated_region_with_crystals_is_flagged() -> None:
    doc = parse(build_map(_split_cave(), buildings=[tool_store(2, 2)]))
    result = analyze_accessibility(doc)
    assert len(result.isolated_regions) == 1
    region = result.isolated_regions[0]
    assert region.size == 8
    assert region.has_resources
    assert result.reachable_percentage == 9 / 17 * 100


def test_open_cave_is_fully_reachable() -> None:
    doc = parse(build_map(walled_grid(6, 6), buildings=[tool_store(1, 1)]))
    result = analyze_accessibility(doc)
    assert result.seeds == [(1, 1)]
    assert result.reachability_map[1][1] == 0
    assert result.reachability_map[4][4] == 6
    assert result.reachability_map[0][0] == -1
    assert result.isolated_regions == []
    assert result.reachable_percentage == 100.0


def test_seeds_fall_back_to_centre_of_largest_cave() -> None:
    doc = parse(build_map(walled_grid(5, 5)))
    grid = TileGrid.from_document(doc)
    assert default_seeds(doc, grid) == [(2, 2)]
    assert analyze_accessibility(doc).reachable_percentage == 100.0


def test_impassable_seeds_are_ignored() -> None:
    doc = parse(build_map(walled_grid(5, 5)))
    result = analyze_accessibility(doc, seeds=[(0, 0), (1, 1)])
    assert result.seeds == [(1, 1)]
    assert result.ignored_seeds == [(0, 0)]


def test_single_tile_corridor_is_a_chokepoint() -> None:
    doc = parse(build_map(TWO_ROOMS, buildings=[tool_store(2, 1)]))
    result = analyze_accessibility(doc)
    assert result.chokepoints == [(2, 3)]


def test_critical_path_to_discover_objective_reports_bottleneck() -> None:
    doc = parse(
        build_map(
            TWO_ROOMS,
            buildings=[tool_store(2, 1)],
            objectives=["discovertile:2,5/Find the far room"],
        )
    )
    result = analyze_accessibility(doc)
    assert len(result.critical_paths) == 1
    critical = result.critical_paths[0]
    assert critical.label == "Find the far room"
    assert critical.path is not None
    assert critical.path.cost == 4
    assert critical.bottlenecks == [(2, 3)]


def test_unpowered_fence_blocks_passage_until_powered() -> None:
    fence = _building("BuildingElectricFence_C", 2, 3)
    doc = parse(build_map(TWO_ROOMS, buildings=[tool_store(2, 1), fence]))
    result = analyze_accessibility(doc)
    assert not result.is_reachable((2, 5))

    station = _building("BuildingPowerStation_C", 1, 1)
    doc = parse(build_map(TWO_ROOMS, buildings=[tool_store(2, 1), fence, station]))
    assert analyze_accessibility(doc).is_reachable((2, 5))


def test_connected_components_are_row_major() -> None:
    grid = TileGrid.from_tiles(TWO_ROOMS)
    tiles = {(1, 4), (1, 1), (1, 2)}
    assert connected_components(grid, tiles) == [[(1, 1), (1, 2)], [(1, 4)]]


def test_location_next_to_reachable_tile_counts_as_reachable() -> None:
    doc = parse(build_map(walled_grid(5, 5), buildings=[tool_store(1, 1)]))
    result = analyze_accessibility(doc)
    grid = TileGrid.from_document(doc)
    assert is_location_reachable(grid, result.reachability_map, (0, 1))
    assert not result.is_reachable((0, 1))


def test_diagonal_contact_does_not_make_a_location_reachable() -> None:
    doc = parse(
        build_map(
            walled_grid(5, 5),
            buildings=[tool_store(1, 1)],
            objectives=["discovertile:0,0/Corner", "discovertile:0,1/Edge"],
        )
    )
    result = analyze_accessibility(doc)
    grid = TileGrid.from_document(doc)
    assert not is_location_reachable(grid, result.reachability_map, (0, 0))

    paths = {critical.label: critical.path for critical in result.critical_paths}
    assert paths["Corner"] is None
    assert paths["Edge"] is not None
    assert paths["Edge"].path[-1] == (1, 1)
