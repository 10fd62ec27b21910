from collections import deque

import pytest

from map_text import DIRT, GROUND, SOLID, build_map, walled_grid
from minermap.core.errors import AnalysisCancelled, CancelToken
from minermap.core.grid import TileGrid
from minermap.core.parser import parse
from minermap.core.pathfinding import PathFinder, drilling_cost, find_path


def _bfs_distance(grid: TileGrid, start, goal) -> int | None:
    queue = deque([(start, 0)])
    seen = {start}
    while queue:
        current, distance = queue.popleft()
        if current == goal:
            return distance
        for neighbor in grid.passable_neighbors(current):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append((neighbor, distance + 1))
    return None


MAZE = [
    [SOLID, SOLID, SOLID, SOLID, SOLID, SOLID, SOLID],
    [SOLID, GROUND, GROUND, GROUND, SOLID, GROUND, SOLID],
    [SOLID, SOLID, SOLID, GROUND, SOLID, GROUND, SOLID],
    [SOLID, GROUND, GROUND, GROUND, GROUND, GROUND, SOLID],
    [SOLID, GROUND, SOLID, SOLID, SOLID, GROUND, SOLID],
    [SOLID, GROUND, GROUND, GROUND, SOLID, GROUND, SOLID],
    [SOLID, SOLID, SOLID, SOLID, SOLID, SOLID, SOLID],
]


def test_walking_cost_matches_bfs_distance_on_uniform_ground() -> None:
    grid = TileGrid.from_tiles(MAZE)
    finder = PathFinder(grid)
    for goal in [(1, 5), (5, 3), (5, 5), (3, 1)]:
        result = finder.find_path((1, 1), goal)
        assert result is not None
        assert result.cost == _bfs_distance(grid, (1, 1), goal)
        assert result.path[0] == (1, 1)
        assert result.path[-1] == goal
        assert len(result.path) == result.cost + 1


def test_path_steps_are_adjacent_and_passable() -> None:
    grid = TileGrid.from_tiles(MAZE)
    result = PathFinder(grid).find_path((1, 1), (5, 3))
    assert result is not None
    for (r1, c1), (r2, c2) in zip(result.path, result.path[1:]):
        assert abs(r1 - r2) + abs(c1 - c2) == 1
        assert grid.is_passable(r2, c2)


def test_start_equals_goal() -> None:
    result = PathFinder(TileGrid.from_tiles(MAZE)).find_path((1, 1), (1, 1))
    assert result is not None
    assert result.path == [(1, 1)]
    assert result.cost == 0.0


def test_unreachable_and_out_of_bounds_return_none() -> None:
    grid = TileGrid.from_tiles(walled_grid(5, 5))
    sealed = [row[:] for row in walled_grid(5, 5)]
    sealed[2] = [SOLID] * 5
    finder = PathFinder(TileGrid.from_tiles(sealed))
    assert finder.find_path((1, 1), (3, 3)) is None
    assert PathFinder(grid).find_path((1, 1), (9, 9)) is None


def test_equal_cost_ties_prefer_lower_heuristic_then_insertion_order() -> None:
    finder = PathFinder(TileGrid.from_tiles(walled_grid(5, 5)))

    down_first = finder.find_path((1, 1), (3, 3))
    assert down_first is not None
    assert down_first.path == [(1, 1), (2, 1), (3, 1), (3, 2), (3, 3)]

    up_first = finder.find_path((3, 3), (1, 1))
    assert up_first is not None
    assert up_first.path == [(3, 3), (2, 3), (1, 3), (1, 2), (1, 1)]


def test_rubble_costs_its_level() -> None:
    tiles = walled_grid(3, 5)
    tiles[1][2] = 5
    result = PathFinder(TileGrid.from_tiles(tiles)).find_path((1, 1), (1, 3))
    assert result is not None
    assert result.cost == (1 + 4) + 1


def test_drilling_crosses_walls_at_hardness_cost() -> None:
    tiles = walled_grid(3, 5)
    tiles[1][2] = DIRT
    grid = TileGrid.from_tiles(tiles)
    assert PathFinder(grid).find_path((1, 1), (1, 3)) is None

    result = PathFinder(grid, drilling_cost(grid)).find_path((1, 1), (1, 3))
    assert result is not None
    assert result.path == [(1, 1), (1, 2), (1, 3)]
    assert result.cost == (1 + 2) + 1


def test_drilling_never_crosses_solid_rock() -> None:
    tiles = walled_grid(3, 5)
    tiles[1][2] = SOLID
    grid = TileGrid.from_tiles(tiles)
    assert PathFinder(grid, drilling_cost(grid)).find_path((1, 1), (1, 3)) is None


def test_find_path_on_document() -> None:
    doc = parse(build_map(walled_grid(5, 5)))
    result = find_path(doc, (1, 1), (3, 3))
    assert result is not None
    assert result.cost == 4


def test_cancelled_search_raises() -> None:
    token = CancelToken()
    token.cancel()
    with pytest.raises(AnalysisCancelled):
        PathFinder(TileGrid.from_tiles(MAZE)).find_path((1, 1), (5, 5), cancel=token)
