"""Decoder for the script section: variables, event chains and commands."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from minermap.core.document import (
    EventChain,
    PropertyValue,
    ScriptCommand,
    ScriptSection,
    ScriptVariable,
    VariableKind,
)
from minermap.core.sections import DecodeContext, Section, parse_finite_float

VARIABLE_PATTERN = re.compile(r"^(int|float|bool|string)\s+(\w+)\s*=\s*(.*)$")
HEADER_PATTERN = re.compile(r"^(\w+)::;?$")
GUARD_PATTERN = re.compile(r"^\((.+)\)(\w+);$")


@dataclass
class _Chain:
    name: str
    line: int
    guard: str | None = None
    guard_target: str | None = None
    commands: list[ScriptCommand] = field(default_factory=list)

    def build(self) -> EventChain:
        return EventChain(
            name=self.name,
            guard=self.guard,
            guard_target=self.guard_target,
            commands=self.commands,
            line=self.line,
        )


def parse_variable_value(kind: VariableKind, text: str) -> PropertyValue:
    value = text.strip()
    if kind is VariableKind.STRING:
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            return value[1:-1]
        return value
    value = value.rstrip(";").strip()
    if kind is VariableKind.INT:
        return int(value)
    if kind is VariableKind.FLOAT:
        return parse_finite_float(value)
    lowered = value.lower()
    if lowered not in ("true", "false"):
        raise ValueError(f"'{value}' is not a bool")
    return lowered == "true"


def parse_command(text: str, line: int | None = None) -> ScriptCommand:
    """Parse ``command:params;`` splitting params on ``:`` when present."""
    name, _, rest = text.partition(":")
    params = rest[:-1] if rest.endswith(";") else rest
    separator = ":" if ":" in params else ","
    parameters = [part.strip() for part in params.split(separator)] if params else []
    return ScriptCommand(
        command=name.strip(), parameters=parameters, separator=separator, line=line
    )


def decode_script(section: Section, context: DecodeContext) -> ScriptSection:
    variables: dict[str, ScriptVariable] = {}
    preamble: list[ScriptCommand] = []
    chains: list[_Chain] = []
    current: _Chain | None = None
    pending_guard: tuple[str, str, int, str] | None = None

    def append(command: ScriptCommand) -> None:
        if current is None:
            preamble.append(command)
        else:
            current.commands.append(command)

    for number, raw in section.lines:
        trimmed = raw.strip()
        if not trimmed:
            continue

        header = HEADER_PATTERN.match(trimmed)
        if header:
            current = _Chain(name=header.group(1), line=number)
            if pending_guard is not None:
                current.guard, current.guard_target = pending_guard[:2]
                pending_guard = None
            chains.append(current)
            continue

        if pending_guard is not None:
            append(ScriptCommand(command=pending_guard[3], opaque=True, line=pending_guard[2]))
            pending_guard = None

        variable = VARIABLE_PATTERN.match(trimmed)
        if variable:
            kind = VariableKind(variable.group(1))
            name = variable.group(2)
            try:
                value = parse_variable_value(kind, variable.group(3))
            except ValueError:
                context.warn(
                    f"invalid {kind.value} value for variable '{name}'", number
                )
                continue
            if name in variables:
                context.warn(f"variable '{name}' is declared more than once", number)
            variables[name] = ScriptVariable(
                name=name, kind=kind, value=value, line=number
            )
            continue

        guard = GUARD_PATTERN.match(trimmed)
        if guard:
            pending_guard = (guard.group(1), guard.group(2), number, trimmed)
            continue

        if ":" in trimmed and trimmed.endswith(";"):
            append(parse_command(trimmed, number))
        else:
            append(ScriptCommand(command=trimmed, opaque=True, line=number))

    if pending_guard is not None:
        append(ScriptCommand(command=pending_guard[3], opaque=True, line=pending_guard[2]))

    return ScriptSection(
        variables=variables,
        preamble=preamble,
        events=[chain.build() for chain in chains],
    )
