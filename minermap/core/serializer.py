"""Write a MapDocument back to map text."""

from __future__ import annotations

from typing import Callable

from minermap.core.document import (
    Biome,
    BuildingObjective,
    DiscoverTileObjective,
    Entity,
    FindMinerObjective,
    HazardTable,
    MapDocument,
    ResourcesObjective,
    ScriptCommand,
    ScriptVariable,
    Transform,
    VariableKind,
    VariableObjective,
)
from minermap.core.decoders import INFO_FIELDS


def format_number(value: float) -> str:
    return repr(float(value))


def format_transform(transform: Transform) -> str:
    t, r, s = transform.translation, transform.rotation, transform.scale
    return (
        f"Translation: X={format_number(t.x)} Y={format_number(t.y)} "
        f"Z={format_number(t.z)} "
        f"Rotation: P={format_number(r.pitch)} Y={format_number(r.yaw)} "
        f"R={format_number(r.roll)} "
        f"Scale X={format_number(s.x)} Y={format_number(s.y)} Z={format_number(s.z)}"
    )


def format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, Transform):
        return format_transform(value)
    if isinstance(value, Biome):
        return value.value
    if isinstance(value, list):
        return "".join(f"{row},{col}/" for row, col in value)
    return str(value)


def _grid_lines(grid: list[list[int]]) -> list[str]:
    return [",".join(str(value) for value in row) + "," for row in grid]


def _info_lines(doc: MapDocument) -> list[str]:
    lines = []
    for key in INFO_FIELDS:
        value = getattr(doc.info, key)
        if value is None or value == []:
            continue
        lines.append(f"{key}:{format_value(value)}")
    return lines


def _resource_lines(doc: MapDocument) -> list[str] | None:
    if doc.resources is None:
        return None
    lines: list[str] = []
    for name, grid in doc.resources.grids().items():
        lines.append(f"{name}:")
        lines.extend(_grid_lines(grid))
    return lines


def _objective_line(objective: object) -> str:
    if isinstance(objective, ResourcesObjective):
        return f"resources:{objective.crystals},{objective.ore},{objective.studs}"
    if isinstance(objective, BuildingObjective):
        return f"building:{objective.building}"
    if isinstance(objective, DiscoverTileObjective):
        return f"discovertile:{objective.row},{objective.col}/{objective.description}"
    if isinstance(objective, VariableObjective):
        return f"variable:{objective.condition}/{objective.description}"
    if isinstance(objective, FindMinerObjective):
        return f"findminer:{objective.miner_id}"
    raise TypeError(f"unsupported objective {objective!r}")


def _entity_line(entity: Entity) -> str:
    fields = [entity.type, format_transform(entity.transform)]
    fields.extend(f"{key}={format_value(value)}" for key, value in entity.properties.items())
    return ",".join(fields)


def _variable_line(variable: ScriptVariable) -> str:
    if variable.kind is VariableKind.STRING:
        value = f'"{variable.value}"'
    else:
        value = format_value(variable.value)
    return f"{variable.kind.value} {variable.name}={value}"


def _command_line(command: ScriptCommand) -> str:
    if command.opaque:
        return command.command
    return f"{command.command}:{command.separator.join(command.parameters)};"


def _script_lines(doc: MapDocument) -> list[str] | None:
    script = doc.script
    if script is None:
        return None
    # Variables are written back between the commands they were declared among.
    variables = sorted(script.variables.values(), key=lambda item: item.line or 0)
    lines: list[str] = []

    def declare_before(line: int | None) -> None:
        while variables and (
            line is None or variables[0].line is None or variables[0].line < line
        ):
            lines.append(_variable_line(variables.pop(0)))

    def write_commands(commands: list[ScriptCommand]) -> None:
        for command in commands:
            declare_before(command.line)
            lines.append(_command_line(command))

    write_commands(script.preamble)
    for chain in script.events:
        declare_before(chain.line)
        if chain.guard is not None:
            lines.append(f"({chain.guard}){chain.guard_target or chain.name};")
        lines.append(f"{chain.name}::;")
        write_commands(chain.commands)
    declare_before(None)
    return lines


def _hazard_lines(table: HazardTable | None) -> list[str] | None:
    if table is None:
        return None
    lines = []
    for entry in table.entries:
        header = format_number(entry.interval)
        if entry.delay is not None:
            header += f"/{format_number(entry.delay)}"
        lines.append(header + ":" + "".join(f"{row},{col}/" for row, col in entry.tiles))
    return lines


def _text_lines(text: str | None) -> list[str] | None:
    return None if text is None else text.splitlines()


SECTION_WRITERS: dict[str, Callable[[MapDocument], list[str] | None]] = {
    "comments": lambda doc: doc.comments or None,
    "info": _info_lines,
    "tiles": lambda doc: _grid_lines(doc.tiles),
    "height": lambda doc: _grid_lines(doc.height),
    "resources": _resource_lines,
    "objectives": lambda doc: [_objective_line(item) for item in doc.objectives] or None,
    "buildings": lambda doc: [_entity_line(item) for item in doc.buildings] or None,
    "vehicles": lambda doc: [_entity_line(item) for item in doc.vehicles] or None,
    "creatures": lambda doc: [_entity_line(item) for item in doc.creatures] or None,
    "miners": lambda doc: [_entity_line(item) for item in doc.miners] or None,
    "blocks": lambda doc: None if doc.blocks is None else _grid_lines(doc.blocks),
    "script": _script_lines,
    "briefing": lambda doc: _text_lines(doc.briefing),
    "briefingsuccess": lambda doc: _text_lines(doc.briefingsuccess),
    "briefingfailure": lambda doc: _text_lines(doc.briefingfailure),
    "landslidefrequency": lambda doc: _hazard_lines(doc.landslidefrequency),
    "lavaspread": lambda doc: _hazard_lines(doc.lavaspread),
}


def serialize(doc: MapDocument) -> str:
    """Render ``doc`` as map text that parses back to the same structure."""
    blocks: list[str] = []
    for name, writer in SECTION_WRITERS.items():
        lines = writer(doc)
        if lines is not None:
            blocks.append("\n".join([f"{name}{{", *lines, "}"]))
    for name, body in doc.extra_sections.items():
        blocks.append("\n".join([f"{name}{{", *body.splitlines(), "}"]))
    return "\n".join(blocks) + "\n"
