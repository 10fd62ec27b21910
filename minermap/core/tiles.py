"""Tile catalogue and tile ID decoding."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Mapping

MIN_TILE_ID = 1
MAX_TILE_ID = 165
REINFORCED_OFFSET = 50
UNDISCOVERED_OFFSET = 100


class TileCategory(str, Enum):
    GROUND = "ground"
    RUBBLE = "rubble"
    HAZARD = "hazard"
    POWER_PATH = "power_path"
    WALL = "wall"
    RESOURCE = "resource"
    SPECIAL = "special"


class Hardness(IntEnum):
    NONE = 0
    RUBBLE = 1
    DIRT = 2
    LOOSE = 3
    SEAM = 4
    HARD = 5
    SOLID = 6


class Trigger(str, Enum):
    FLOOD = "flood"
    WASTE = "waste"
    SPAWN = "spawn"
    LANDSLIDE = "landslide"
    EROSION = "erosion"


@dataclass(frozen=True)
class TileInfo:
    id: int
    name: str
    category: TileCategory
    hardness: Hardness = Hardness.NONE
    walkable: bool = False
    drillable: bool = False
    buildable: bool = False
    fluid: bool = False
    crystal_yield: int = 0
    ore_yield: int = 0
    trigger: Trigger | None = None
    reinforced: bool = False
    undiscovered: bool = False

    @property
    def is_wall(self) -> bool:
        return self.category in (TileCategory.WALL, TileCategory.RESOURCE)

    @property
    def is_hazard(self) -> bool:
        return self.fluid or self.trigger is not None

    @property
    def has_resources(self) -> bool:
        return self.crystal_yield > 0 or self.ore_yield > 0


def _floor(tile_id: int, name: str, **kwargs) -> TileInfo:
    return TileInfo(tile_id, name, TileCategory.GROUND, walkable=True, **kwargs)


def _wall(tile_id: int, name: str, hardness: Hardness, **kwargs) -> TileInfo:
    drillable = kwargs.pop("drillable", hardness is not Hardness.SOLID)
    category = kwargs.pop("category", TileCategory.WALL)
    return TileInfo(
        tile_id, name, category, hardness=hardness, drillable=drillable, **kwargs
    )


def _build_catalog() -> dict[int, TileInfo]:
    tiles: list[TileInfo] = [
        _floor(1, "Ground", buildable=True),
        TileInfo(6, "Lava", TileCategory.HAZARD, fluid=True, trigger=Trigger.EROSION),
        TileInfo(11, "Water", TileCategory.HAZARD, fluid=True, trigger=Trigger.FLOOD),
        TileInfo(
            12,
            "Slimy Slug Hole",
            TileCategory.HAZARD,
            hardness=Hardness.DIRT,
            drillable=True,
            trigger=Trigger.SPAWN,
        ),
        TileInfo(58, "Roof", TileCategory.SPECIAL),
        TileInfo(64, "Cliff", TileCategory.SPECIAL, hardness=Hardness.SOLID),
        TileInfo(65, "Cliff Edge", TileCategory.SPECIAL, hardness=Hardness.SOLID),
    ]
    for level, tile_id in enumerate(range(2, 6), start=1):
        tiles.append(
            TileInfo(
                tile_id,
                f"Rubble {level}",
                TileCategory.RUBBLE,
                hardness=Hardness.RUBBLE,
                walkable=True,
                drillable=True,
            )
        )
    for stage, tile_id in zip((4, 3, 2, 1), range(7, 11)):
        tiles.append(
            TileInfo(
                tile_id,
                f"Erosion {stage}",
                TileCategory.HAZARD,
                walkable=True,
                buildable=tile_id == 10,
                trigger=Trigger.EROSION,
            )
        )
    for index, tile_id in enumerate(range(13, 26)):
        tiles.append(
            TileInfo(
                tile_id,
                "Power Path" if index == 0 else f"Power Path {index + 1}",
                TileCategory.POWER_PATH,
                walkable=True,
            )
        )
    for index, tile_id in enumerate(range(60, 64)):
        tiles.append(
            TileInfo(
                tile_id,
                "Fake Rubble" if index == 0 else f"Fake Rubble {index + 1}",
                TileCategory.SPECIAL,
                walkable=True,
            )
        )

    variants = ("", " (Corner)", " (Inner Corner)", " (Regular)")
    wall_groups = (
        (26, "Dirt", Hardness.DIRT, {}),
        (30, "Loose Rock", Hardness.LOOSE, {"trigger": Trigger.LANDSLIDE}),
        (34, "Hard Rock", Hardness.HARD, {}),
        (38, "Solid Rock", Hardness.SOLID, {}),
        (
            42,
            "Crystal Seam",
            Hardness.SEAM,
            {"category": TileCategory.RESOURCE, "crystal_yield": 5},
        ),
        (
            46,
            "Ore Seam",
            Hardness.SEAM,
            {"category": TileCategory.RESOURCE, "ore_yield": 3},
        ),
        (
            50,
            "Recharge Seam",
            Hardness.SEAM,
            {"category": TileCategory.RESOURCE, "crystal_yield": 1},
        ),
    )
    for first_id, name, hardness, extra in wall_groups:
        for offset, suffix in enumerate(variants):
            tiles.append(_wall(first_id + offset, name + suffix, hardness, **extra))

    return {tile.id: tile for tile in sorted(tiles, key=lambda tile: tile.id)}


BASE_TILES: Mapping[int, TileInfo] = MappingProxyType(_build_catalog())

REINFORCEABLE_IDS: frozenset[int] = frozenset((*range(26, 54), 64, 65))


def in_id_range(tile_id: int) -> bool:
    return MIN_TILE_ID <= tile_id <= MAX_TILE_ID


def resolve_tile(tile_id: int) -> TileInfo | None:
    """Resolve a raw tile ID, applying the reinforced and undiscovered modifiers.

    Reinforced IDs (base + 50) take precedence over undiscovered ones
    (base + 100), so 101-103 and 114-115 decode as reinforced walls.
    """
    base = BASE_TILES.get(tile_id)
    if base is not None:
        return base
    reinforced_base = tile_id - REINFORCED_OFFSET
    if reinforced_base in REINFORCEABLE_IDS:
        tile = BASE_TILES[reinforced_base]
        return replace(
            tile,
            id=tile_id,
            name=f"Reinforced {tile.name}",
            hardness=Hardness(min(Hardness.SOLID, tile.hardness + 1)),
            reinforced=True,
        )
    undiscovered = BASE_TILES.get(tile_id - UNDISCOVERED_OFFSET)
    if undiscovered is not None:
        return replace(
            undiscovered,
            id=tile_id,
            name=f"Undiscovered {undiscovered.name}",
            undiscovered=True,
        )
    return None


def tile_name(tile_id: int) -> str:
    tile = resolve_tile(tile_id)
    return tile.name if tile else f"Unknown ({tile_id})"


def is_passable(tile_id: int) -> bool:
    tile = resolve_tile(tile_id)
    return tile is not None and tile.walkable and not tile.fluid
