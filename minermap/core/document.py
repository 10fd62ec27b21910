"""Typed model of a parsed map file."""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

TILE_WORLD_SIZE = 300.0

Coordinate = tuple[int, int]
PropertyValue = Union[bool, int, float, str]


class Biome(str, Enum):
    ROCK = "rock"
    ICE = "ice"
    LAVA = "lava"


class Vector3(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Rotation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0


class Transform(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    translation: Vector3 = Field(default_factory=Vector3)
    rotation: Rotation = Field(default_factory=Rotation)
    scale: Vector3 = Field(default_factory=lambda: Vector3(x=1.0, y=1.0, z=1.0))

    def tile(self, tile_size: float = TILE_WORLD_SIZE) -> Coordinate:
        """Return the (row, col) of the tile under this world position."""
        return (
            math.floor(self.translation.y / tile_size),
            math.floor(self.translation.x / tile_size),
        )


class InfoSection(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    rowcount: int
    colcount: int
    camerapos: Transform | None = None
    camerazoom: float | None = None
    biome: Biome | None = None
    creator: str | None = None
    levelname: str | None = None
    version: str | None = None
    opencaves: list[Coordinate] = Field(default_factory=list)
    oxygen: float | None = None
    initialcrystals: int | None = None
    initialore: int | None = None
    spiderrate: int | None = None
    spidermin: int | None = None
    spidermax: int | None = None
    erosioninitialwaittime: float | None = None
    erosionscale: float | None = None


class Entity(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str
    transform: Transform
    properties: dict[str, PropertyValue] = Field(default_factory=dict)


class ResourcesObjective(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["resources"] = "resources"
    crystals: int = 0
    ore: int = 0
    studs: int = 0


class BuildingObjective(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["building"] = "building"
    building: str


class DiscoverTileObjective(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["discovertile"] = "discovertile"
    row: int
    col: int
    description: str = ""


class VariableObjective(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["variable"] = "variable"
    condition: str
    description: str = ""


class FindMinerObjective(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["findminer"] = "findminer"
    miner_id: int


Objective = Annotated[
    Union[
        ResourcesObjective,
        BuildingObjective,
        DiscoverTileObjective,
        VariableObjective,
        FindMinerObjective,
    ],
    Field(discriminator="kind"),
]


class VariableKind(str, Enum):
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"


_VARIABLE_TYPES: dict[VariableKind, type] = {
    VariableKind.INT: int,
    VariableKind.FLOAT: float,
    VariableKind.BOOL: bool,
    VariableKind.STRING: str,
}


class ScriptVariable(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    kind: VariableKind
    value: PropertyValue
    line: int | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def validate_value_kind(self) -> "ScriptVariable":
        if type(self.value) is not _VARIABLE_TYPES[self.kind]:
            raise ValueError(
                f"{self.kind.value} variable {self.name} holds "
                f"{type(self.value).__name__}"
            )
        return self


class ScriptCommand(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    command: str
    parameters: list[str] = Field(default_factory=list)
    separator: str = ","
    opaque: bool = False
    line: int | None = Field(default=None, exclude=True)


class EventChain(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    guard: str | None = None
    guard_target: str | None = None
    commands: list[ScriptCommand] = Field(default_factory=list)
    line: int | None = Field(default=None, exclude=True)


class ScriptSection(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    variables: dict[str, ScriptVariable] = Field(default_factory=dict)
    preamble: list[ScriptCommand] = Field(default_factory=list)
    events: list[EventChain] = Field(default_factory=list)

    def event(self, name: str) -> EventChain | None:
        for chain in self.events:
            if chain.name == name:
                return chain
        return None


class HazardEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    interval: float
    delay: float | None = None
    tiles: list[Coordinate] = Field(default_factory=list)


class HazardTable(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    entries: list[HazardEntry] = Field(default_factory=list)

    def entry(self, interval: float) -> HazardEntry | None:
        for entry in self.entries:
            if entry.interval == interval:
                return entry
        return None

    def tiles(self) -> list[Coordinate]:
        return [tile for entry in self.entries for tile in entry.tiles]


class ResourceGrids(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    crystals: list[list[int]] | None = None
    ore: list[list[int]] | None = None

    def grids(self) -> dict[str, list[list[int]]]:
        found: dict[str, list[list[int]]] = {}
        if self.crystals is not None:
            found["crystals"] = self.crystals
        if self.ore is not None:
            found["ore"] = self.ore
        return found


class SectionSpan(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_line: int
    end_line: int


class SourceMap(BaseModel):
    """Source line numbers (1-based) for sections and grid rows."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sections: dict[str, SectionSpan] = Field(default_factory=dict)
    rows: dict[str, list[int]] = Field(default_factory=dict)

    def section_line(self, name: str) -> int | None:
        span = self.sections.get(name)
        return span.start_line if span else None

    def row_line(self, grid: str, row: int) -> int | None:
        lines = self.rows.get(grid)
        if lines is None or not 0 <= row < len(lines):
            return self.section_line(grid.split(".")[0])
        return lines[row]


class DecodeWarning(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    message: str
    line: int | None = None
    section: str | None = None


ENTITY_SECTIONS = ("buildings", "vehicles", "creatures", "miners")
TOOL_STORE = "BuildingToolStore_C"
POWER_STATION = "BuildingPowerStation_C"
ELECTRIC_FENCE = "BuildingElectricFence_C"


class MapDocument(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    info: InfoSection
    tiles: list[list[int]]
    height: list[list[int]]
    resources: ResourceGrids | None = None
    objectives: list[Objective] = Field(default_factory=list)
    buildings: list[Entity] = Field(default_factory=list)
    vehicles: list[Entity] = Field(default_factory=list)
    creatures: list[Entity] = Field(default_factory=list)
    miners: list[Entity] = Field(default_factory=list)
    blocks: list[list[int]] | None = None
    script: ScriptSection | None = None
    landslidefrequency: HazardTable | None = None
    lavaspread: HazardTable | None = None
    comments: list[str] = Field(default_factory=list)
    briefing: str | None = None
    briefingsuccess: str | None = None
    briefingfailure: str | None = None
    extra_sections: dict[str, str] = Field(default_factory=dict)
    source: SourceMap = Field(default_factory=SourceMap)
    warnings: list[DecodeWarning] = Field(default_factory=list)

    @property
    def declared_shape(self) -> tuple[int, int]:
        return self.info.rowcount, self.info.colcount

    def structure(self) -> dict[str, Any]:
        """Content of the document without source positions or diagnostics."""
        return self.model_dump(exclude={"source", "warnings"})

    def entities(self) -> list[tuple[str, Entity]]:
        return [
            (section, entity)
            for section in ENTITY_SECTIONS
            for entity in getattr(self, section)
        ]

    def buildings_of_type(self, building_type: str) -> list[Entity]:
        return [entity for entity in self.buildings if entity.type == building_type]

    def hazard_tables(self) -> dict[str, HazardTable]:
        tables: dict[str, HazardTable] = {}
        if self.landslidefrequency is not None:
            tables["landslidefrequency"] = self.landslidefrequency
        if self.lavaspread is not None:
            tables["lavaspread"] = self.lavaspread
        return tables
