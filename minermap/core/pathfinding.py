"""Grid-based pathfinding (A*)."""

from __future__ import annotations

import heapq
import itertools
import math
from typing import Callable

from minermap.core.contracts import PathResult
from minermap.core.document import Coordinate, MapDocument
from minermap.core.errors import CancelToken, check_cancelled
from minermap.core.grid import TileGrid
from minermap.core.tiles import UNDISCOVERED_OFFSET, TileCategory, TileInfo

CostFn = Callable[[Coordinate, Coordinate], "float | None"]


def rubble_level(tile: TileInfo) -> int:
    base_id = tile.id - UNDISCOVERED_OFFSET if tile.undiscovered else tile.id
    return base_id - 1


def walking_cost(grid: TileGrid) -> CostFn:
    """Cost of stepping onto a passable tile; rubble adds its level."""

    def cost(_: Coordinate, to: Coordinate) -> float | None:
        if not grid.is_passable(*to):
            return None
        tile = grid.tile(*to)
        if tile is not None and tile.category is TileCategory.RUBBLE:
            return 1.0 + rubble_level(tile)
        return 1.0

    return cost


def drilling_cost(grid: TileGrid) -> CostFn:
    """Walking cost, plus drillable walls at ``1 + hardness``."""
    walk = walking_cost(grid)

    def cost(current: Coordinate, to: Coordinate) -> float | None:
        step = walk(current, to)
        if step is not None:
            return step
        if to in grid.blocked:
            return None
        tile = grid.tile(*to)
        if tile is None or not tile.drillable or tile.fluid:
            return None
        return 1.0 + int(tile.hardness)

    return cost


class PathFinder:
    def __init__(self, grid: TileGrid, cost_fn: CostFn | None = None) -> None:
        self._grid = grid
        self._cost_fn = cost_fn or walking_cost(grid)

    def find_path(
        self,
        start: Coordinate,
        goal: Coordinate,
        *,
        cancel: CancelToken | None = None,
    ) -> PathResult | None:
        """Cheapest path from ``start`` to ``goal``, both ends included.

        Ties on f are broken by the smaller heuristic, then by insertion
        order. Closed nodes are never reopened.
        """
        if not self._grid.in_bounds(*start) or not self._grid.in_bounds(*goal):
            return None
        if start == goal:
            return PathResult(path=[start], cost=0.0)

        counter = itertools.count()
        start_h = self._heuristic(start, goal)
        open_set: list[tuple[float, int, int, Coordinate]] = []
        heapq.heappush(open_set, (start_h, start_h, next(counter), start))
        came_from: dict[Coordinate, Coordinate | None] = {start: None}
        g_score: dict[Coordinate, float] = {start: 0.0}
        closed: set[Coordinate] = set()

        while open_set:
            check_cancelled(cancel)
            _, _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            if current == goal:
                return PathResult(
                    path=self._reconstruct_path(came_from, current),
                    cost=g_score[current],
                )
            closed.add(current)

            for neighbor in self._grid.neighbors(current):
                if neighbor in closed:
                    continue
                step = self._cost_fn(current, neighbor)
                if step is None:
                    continue
                tentative = g_score[current] + step
                if tentative < g_score.get(neighbor, math.inf):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative
                    h_score = self._heuristic(neighbor, goal)
                    heapq.heappush(
                        open_set,
                        (tentative + h_score, h_score, next(counter), neighbor),
                    )

        return None

    @staticmethod
    def _heuristic(a: Coordinate, b: Coordinate) -> int:
        return abs(a[0] - b[0]) + abs(a[1] - b[1])

    @staticmethod
    def _reconstruct_path(
        came_from: dict[Coordinate, Coordinate | None],
        current: Coordinate,
    ) -> list[Coordinate]:
        path = [current]
        while came_from[current] is not None:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path


def find_path(
    doc: MapDocument,
    start: Coordinate,
    end: Coordinate,
    cost_fn: CostFn | None = None,
    *,
    cancel: CancelToken | None = None,
) -> PathResult | None:
    grid = TileGrid.from_document(doc)
    return PathFinder(grid, cost_fn).find_path(start, end, cancel=cancel)
