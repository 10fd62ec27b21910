"""Read-only tile grid view with passability rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from minermap.core.document import (
    ELECTRIC_FENCE,
    POWER_STATION,
    TILE_WORLD_SIZE,
    Coordinate,
    MapDocument,
)
from minermap.core.tiles import TileInfo, is_passable, resolve_tile

NEIGHBOR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass(frozen=True)
class TileGrid:
    rows: int
    cols: int
    tiles: tuple[tuple[int, ...], ...]
    blocked: frozenset[Coordinate] = frozenset()
    passable: frozenset[Coordinate] = field(default=frozenset(), compare=False)

    @classmethod
    def from_tiles(
        cls, tiles: list[list[int]], blocked: frozenset[Coordinate] = frozenset()
    ) -> "TileGrid":
        rows = tuple(tuple(row) for row in tiles)
        cols = max((len(row) for row in rows), default=0)
        passable = frozenset(
            (r, c)
            for r, row in enumerate(rows)
            for c, tile_id in enumerate(row)
            if (r, c) not in blocked and is_passable(tile_id)
        )
        return cls(
            rows=len(rows), cols=cols, tiles=rows, blocked=blocked, passable=passable
        )

    @classmethod
    def from_document(
        cls, doc: MapDocument, *, tile_size: float = TILE_WORLD_SIZE
    ) -> "TileGrid":
        return cls.from_tiles(doc.tiles, blocked=unpowered_fences(doc, tile_size))

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < len(self.tiles[row])

    def tile_id(self, row: int, col: int) -> int | None:
        if not self.in_bounds(row, col):
            return None
        return self.tiles[row][col]

    def tile(self, row: int, col: int) -> TileInfo | None:
        tile_id = self.tile_id(row, col)
        return None if tile_id is None else resolve_tile(tile_id)

    def is_passable(self, row: int, col: int) -> bool:
        return (row, col) in self.passable

    def neighbors(self, position: Coordinate) -> list[Coordinate]:
        row, col = position
        return [
            (row + dr, col + dc)
            for dr, dc in NEIGHBOR_OFFSETS
            if self.in_bounds(row + dr, col + dc)
        ]

    def passable_neighbors(self, position: Coordinate) -> list[Coordinate]:
        return [pos for pos in self.neighbors(position) if pos in self.passable]

    def coordinates(self) -> Iterator[Coordinate]:
        for row, cells in enumerate(self.tiles):
            for col in range(len(cells)):
                yield row, col

    @property
    def size(self) -> int:
        return sum(len(row) for row in self.tiles)


def unpowered_fences(
    doc: MapDocument, tile_size: float = TILE_WORLD_SIZE
) -> frozenset[Coordinate]:
    """Tiles holding an electric fence while the map has no power station."""
    if doc.buildings_of_type(POWER_STATION):
        return frozenset()
    return frozenset(
        fence.transform.tile(tile_size)
        for fence in doc.buildings_of_type(ELECTRIC_FENCE)
    )


def entity_tiles(
    doc: MapDocument, entity_type: str, tile_size: float = TILE_WORLD_SIZE
) -> list[Coordinate]:
    return [
        entity.transform.tile(tile_size)
        for _, entity in doc.entities()
        if entity.type == entity_type
    ]
