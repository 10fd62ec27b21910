"""Split map text into named brace-delimited sections."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from minermap.core.document import DecodeWarning
from minermap.core.errors import ParseError

SECTION_OPEN = re.compile(r"^(\w+)\s*\{$")
BRACE_ONLY = re.compile(r"^[{}]\s*$")


@dataclass(frozen=True)
class Section:
    name: str
    start_line: int
    end_line: int
    lines: tuple[tuple[int, str], ...] = ()

    @property
    def body(self) -> str:
        return "\n".join(text for _, text in self.lines)


def parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"'{text.strip()}' is not a finite number")
    return value


@dataclass
class DecodeContext:
    """Collects warnings and grid row lines while one section is decoded."""

    section: str
    warnings: list[DecodeWarning] = field(default_factory=list)
    rows: dict[str, list[int]] = field(default_factory=dict)

    def warn(self, message: str, line: int | None = None) -> None:
        self.warnings.append(
            DecodeWarning(message=message, line=line, section=self.section)
        )


@dataclass(frozen=True)
class TokenizedDocument:
    sections: dict[str, Section]
    warnings: list[DecodeWarning] = field(default_factory=list)


def tokenize(text: str) -> TokenizedDocument:
    """Return the sections of ``text`` keyed by lowercase name.

    Line numbers are 1-based. The body of a section excludes its opening and
    closing lines and any line holding only a brace.
    """
    sections: dict[str, Section] = {}
    warnings: list[DecodeWarning] = []
    current_name: str | None = None
    current_start = 0
    body: list[tuple[int, str]] = []
    depth = 0

    for number, raw in enumerate(text.splitlines(), start=1):
        trimmed = raw.strip()
        if current_name is None:
            match = SECTION_OPEN.match(trimmed)
            if match:
                current_name = match.group(1).lower()
                current_start = number
                body = []
                depth = 1
            elif "}" in trimmed:
                warnings.append(
                    DecodeWarning(message="closing brace outside a section", line=number)
                )
            elif trimmed:
                warnings.append(
                    DecodeWarning(message="text outside a section ignored", line=number)
                )
            continue

        depth += trimmed.count("{") - trimmed.count("}")
        if depth <= 0 and "}" in trimmed:
            if current_name in sections:
                warnings.append(
                    DecodeWarning(
                        message=f"duplicate section '{current_name}' replaces earlier one",
                        line=current_start,
                        section=current_name,
                    )
                )
            sections[current_name] = Section(
                name=current_name,
                start_line=current_start,
                end_line=number,
                lines=tuple(body),
            )
            current_name = None
            depth = 0
        elif not BRACE_ONLY.match(trimmed):
            body.append((number, raw))

    if current_name is not None:
        raise ParseError(
            f"section '{current_name}' is never closed",
            line=current_start,
            section=current_name,
        )
    return TokenizedDocument(sections=sections, warnings=warnings)
