"""Per-section decoders and the dispatch table used by the parser."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable

from pydantic import ValidationError

from minermap.core.document import (
    Biome,
    BuildingObjective,
    Coordinate,
    DiscoverTileObjective,
    Entity,
    FindMinerObjective,
    HazardEntry,
    HazardTable,
    PropertyValue,
    ResourceGrids,
    ResourcesObjective,
    Rotation,
    Transform,
    VariableObjective,
    Vector3,
)
from minermap.core.errors import ParseError
from minermap.core.script import decode_script
from minermap.core.sections import DecodeContext, Section, parse_finite_float

NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
TRANSLATION_PATTERN = re.compile(
    rf"Translation:\s*X=({NUMBER})\s*Y=({NUMBER})\s*Z=({NUMBER})"
)
ROTATION_PATTERN = re.compile(rf"Rotation:\s*P=({NUMBER})\s*Y=({NUMBER})\s*R=({NUMBER})")
SCALE_PATTERN = re.compile(rf"Scale\s*X=({NUMBER})\s*Y=({NUMBER})\s*Z=({NUMBER})")
INT_PATTERN = re.compile(r"^[-+]?\d+$")
FLOAT_PATTERN = re.compile(rf"^{NUMBER}$")
RESOURCE_HEADERS = ("crystals", "ore")


def parse_transform(text: str) -> Transform:
    translation = TRANSLATION_PATTERN.search(text)
    if translation is None:
        raise ValueError(f"no Translation block in '{text}'")
    x, y, z = (parse_finite_float(value) for value in translation.groups())
    transform = Transform(translation=Vector3(x=x, y=y, z=z))
    rotation = ROTATION_PATTERN.search(text)
    if rotation is not None:
        pitch, yaw, roll = (parse_finite_float(value) for value in rotation.groups())
        transform = transform.model_copy(
            update={"rotation": Rotation(pitch=pitch, yaw=yaw, roll=roll)}
        )
    scale = SCALE_PATTERN.search(text)
    if scale is not None:
        sx, sy, sz = (parse_finite_float(value) for value in scale.groups())
        transform = transform.model_copy(update={"scale": Vector3(x=sx, y=sy, z=sz)})
    return transform


def parse_property_value(text: str) -> PropertyValue:
    value = text.strip()
    if value in ("true", "True"):
        return True
    if value in ("false", "False"):
        return False
    if INT_PATTERN.match(value):
        return int(value)
    if FLOAT_PATTERN.match(value):
        return parse_finite_float(value)
    return value


def parse_coordinate_list(text: str) -> list[Coordinate]:
    coordinates: list[Coordinate] = []
    for chunk in text.split("/"):
        chunk = chunk.strip()
        if not chunk:
            continue
        row, col = chunk.split(",")
        coordinates.append((int(row), int(col)))
    return coordinates


def _parse_biome(text: str) -> Biome:
    return Biome(text.lower())


INFO_FIELDS: dict[str, Callable[[str], Any]] = {
    "rowcount": int,
    "colcount": int,
    "camerapos": parse_transform,
    "camerazoom": parse_finite_float,
    "biome": _parse_biome,
    "creator": str,
    "levelname": str,
    "version": str,
    "opencaves": parse_coordinate_list,
    "oxygen": parse_finite_float,
    "initialcrystals": int,
    "initialore": int,
    "spiderrate": int,
    "spidermin": int,
    "spidermax": int,
    "erosioninitialwaittime": parse_finite_float,
    "erosionscale": parse_finite_float,
}


def decode_info(section: Section, context: DecodeContext) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for number, raw in section.lines:
        for segment in raw.split(";"):
            segment = segment.strip()
            if not segment:
                continue
            key, separator, value = segment.partition(":")
            key = key.strip().lower()
            value = value.strip()
            if not separator:
                context.warn(f"expected key:value, got '{segment}'", number)
                continue
            converter = INFO_FIELDS.get(key)
            if converter is None:
                context.warn(f"unknown info key '{key}'", number)
                continue
            try:
                values[key] = converter(value)
            except ValueError:
                context.warn(f"invalid value '{value}' for info key '{key}'", number)

    for required in ("rowcount", "colcount"):
        if required not in values:
            raise ParseError(
                f"info section is missing '{required}'",
                line=section.start_line,
                section=section.name,
            )
    return values


def decode_grid_lines(
    lines: tuple[tuple[int, str], ...] | list[tuple[int, str]],
    context: DecodeContext,
    key: str,
) -> list[list[int]]:
    rows: list[list[int]] = []
    row_lines: list[int] = []
    for number, raw in lines:
        trimmed = raw.strip()
        if not trimmed:
            continue
        if trimmed.endswith(","):
            trimmed = trimmed[:-1]
        row: list[int] = []
        for cell in trimmed.split(","):
            cell = cell.strip()
            try:
                row.append(int(cell))
            except ValueError:
                context.warn(f"non-integer grid value '{cell}' skipped", number)
        if row:
            rows.append(row)
            row_lines.append(number)
    context.rows[key] = row_lines
    return rows


def decode_grid(section: Section, context: DecodeContext) -> list[list[int]]:
    rows = decode_grid_lines(section.lines, context, section.name)
    if not rows and section.name in ("tiles", "height"):
        raise ParseError(
            f"{section.name} section has no parseable rows",
            line=section.start_line,
            section=section.name,
        )
    return rows


def decode_resources(section: Section, context: DecodeContext) -> ResourceGrids:
    groups: dict[str, list[tuple[int, str]]] = {}
    current: list[tuple[int, str]] | None = None
    for number, raw in section.lines:
        trimmed = raw.strip()
        if not trimmed:
            continue
        if trimmed.endswith(":") and not any(char.isdigit() for char in trimmed):
            name = trimmed[:-1].strip().lower()
            if name in RESOURCE_HEADERS:
                current = groups.setdefault(name, [])
            else:
                context.warn(f"unknown resource grid '{name}'", number)
                current = None
            continue
        if current is None:
            context.warn("resource row outside a crystals: or ore: block", number)
            continue
        current.append((number, raw))

    grids = {
        name: decode_grid_lines(lines, context, f"resources.{name}")
        for name, lines in groups.items()
    }
    return ResourceGrids(**grids)


class _FieldState(Enum):
    FIELD = "field"
    COORDINATES = "coordinates"
    SCALE = "scale"
    SCALE_VALUE = "scale_value"


def split_entity_fields(line: str) -> tuple[list[str], bool]:
    """Split an entity line on commas, keeping the coordinate block whole.

    The coordinate block runs from ``Translation:`` to the value after the
    third ``=`` of its ``Scale`` triple. Returns the fields and whether the
    block (if any) was terminated.
    """
    fields: list[str] = []
    buffer: list[str] = []
    state = _FieldState.FIELD
    equals_seen = 0
    index = 0
    while index < len(line):
        char = line[index]
        if state is _FieldState.FIELD:
            if line.startswith("Translation:", index):
                state = _FieldState.COORDINATES
            elif char == ",":
                fields.append("".join(buffer).strip())
                buffer = []
                index += 1
                continue
        elif state is _FieldState.COORDINATES:
            if line.startswith("Scale", index):
                state = _FieldState.SCALE
                equals_seen = 0
        elif state is _FieldState.SCALE:
            if char == "=":
                equals_seen += 1
                if equals_seen == 3:
                    state = _FieldState.SCALE_VALUE
        elif state is _FieldState.SCALE_VALUE and char == ",":
            state = _FieldState.FIELD
            continue
        buffer.append(char)
        index += 1

    tail = "".join(buffer).strip()
    if tail:
        fields.append(tail)
    return fields, state in (_FieldState.FIELD, _FieldState.SCALE_VALUE)


def decode_entity_line(line: str, context: DecodeContext, number: int) -> Entity | None:
    fields, terminated = split_entity_fields(line.strip())
    if not terminated:
        context.warn("coordinate block has no Scale triple", number)
    fields = [value for value in fields if value]
    if not fields:
        return None

    entity_type = fields[0]
    transform: Transform | None = None
    properties: dict[str, PropertyValue] = {}
    for value in fields[1:]:
        if value.startswith("Translation:"):
            try:
                transform = parse_transform(value)
            except ValueError:
                context.warn(f"invalid coordinates for '{entity_type}'", number)
            continue
        key, separator, raw_value = value.partition("=")
        if not separator or not key.strip():
            context.warn(f"ignored entity field '{value}'", number)
            continue
        try:
            properties[key.strip()] = parse_property_value(raw_value)
        except ValueError:
            context.warn(f"invalid value for entity field '{key.strip()}'", number)

    if transform is None:
        context.warn(f"entity '{entity_type}' has no coordinates", number)
        return None
    return Entity(type=entity_type, transform=transform, properties=properties)


def decode_entities(section: Section, context: DecodeContext) -> list[Entity]:
    entities: list[Entity] = []
    for number, raw in section.lines:
        if not raw.strip():
            continue
        entity = decode_entity_line(raw, context, number)
        if entity is not None:
            entities.append(entity)
    return entities


def _decode_objective(text: str) -> Any:
    kind, _, value = text.partition(":")
    kind = kind.strip().lower()
    if kind == "resources":
        amounts = [int(part) for part in value.split(",") if part.strip()]
        if not amounts or len(amounts) > 3:
            raise ValueError("expected crystals,ore,studs")
        amounts += [0] * (3 - len(amounts))
        return ResourcesObjective(crystals=amounts[0], ore=amounts[1], studs=amounts[2])
    if kind == "building":
        if not value.strip():
            raise ValueError("missing building type")
        return BuildingObjective(building=value.strip())
    if kind == "discovertile":
        position, _, description = value.partition("/")
        row, col = (int(part) for part in position.split(","))
        return DiscoverTileObjective(row=row, col=col, description=description.strip())
    if kind == "variable":
        condition, _, description = value.partition("/")
        if not condition.strip():
            raise ValueError("missing condition")
        return VariableObjective(
            condition=condition.strip(), description=description.strip()
        )
    if kind == "findminer":
        return FindMinerObjective(miner_id=int(value.strip()))
    raise ValueError(f"unknown objective type '{kind}'")


def decode_objectives(section: Section, context: DecodeContext) -> list[Any]:
    objectives: list[Any] = []
    for number, raw in section.lines:
        trimmed = raw.strip()
        if not trimmed:
            continue
        try:
            objectives.append(_decode_objective(trimmed))
        except (ValueError, ValidationError) as exc:
            context.warn(f"invalid objective '{trimmed}': {exc}", number)
    return objectives


def decode_hazard_table(section: Section, context: DecodeContext) -> HazardTable:
    entries: list[HazardEntry] = []
    seen: set[float] = set()
    for number, raw in section.lines:
        trimmed = raw.strip()
        if not trimmed:
            continue
        header, separator, body = trimmed.partition(":")
        if not separator:
            context.warn(f"expected interval:tiles, got '{trimmed}'", number)
            continue
        interval_text, _, delay_text = header.partition("/")
        try:
            interval = parse_finite_float(interval_text)
            delay = parse_finite_float(delay_text) if delay_text.strip() else None
            tiles = parse_coordinate_list(body)
        except ValueError:
            context.warn(f"invalid hazard line '{trimmed}'", number)
            continue
        if interval in seen:
            continue
        seen.add(interval)
        entries.append(HazardEntry(interval=interval, delay=delay, tiles=tiles))
    return HazardTable(entries=entries)


def decode_comments(section: Section, context: DecodeContext) -> list[str]:
    return [raw.strip() for _, raw in section.lines if raw.strip()]


def decode_text(section: Section, context: DecodeContext) -> str:
    return section.body.strip()


SectionDecoder = Callable[[Section, DecodeContext], Any]

DECODERS: dict[str, SectionDecoder] = {
    "comments": decode_comments,
    "info": decode_info,
    "tiles": decode_grid,
    "height": decode_grid,
    "resources": decode_resources,
    "objectives": decode_objectives,
    "buildings": decode_entities,
    "vehicles": decode_entities,
    "creatures": decode_entities,
    "miners": decode_entities,
    "blocks": decode_grid,
    "script": decode_script,
    "briefing": decode_text,
    "briefingsuccess": decode_text,
    "briefingfailure": decode_text,
    "landslidefrequency": decode_hazard_table,
    "lavaspread": decode_hazard_table,
}
