"""Build a MapDocument from map text."""

from __future__ import annotations

from typing import Any

from minermap.core.decoders import DECODERS
from minermap.core.document import (
    DecodeWarning,
    InfoSection,
    MapDocument,
    SectionSpan,
    SourceMap,
)
from minermap.core.errors import ParseError
from minermap.core.sections import DecodeContext, tokenize

REQUIRED_SECTIONS = ("info", "tiles", "height")


def parse(text: str) -> MapDocument:
    """Parse map text into an immutable MapDocument.

    Raises ParseError when a section is unclosed or a required section
    (info, tiles, height) is missing or unusable. Everything else that is
    malformed is dropped with a DecodeWarning on ``document.warnings``.
    """
    tokenized = tokenize(text)
    for name in REQUIRED_SECTIONS:
        if name not in tokenized.sections:
            raise ParseError(f"missing required section '{name}'", section=name)

    warnings: list[DecodeWarning] = list(tokenized.warnings)
    values: dict[str, Any] = {}
    extra_sections: dict[str, str] = {}
    rows: dict[str, list[int]] = {}
    spans: dict[str, SectionSpan] = {}

    for name, section in tokenized.sections.items():
        spans[name] = SectionSpan(
            start_line=section.start_line, end_line=section.end_line
        )
        decoder = DECODERS.get(name)
        if decoder is None:
            warnings.append(
                DecodeWarning(
                    message=f"unknown section '{name}' kept verbatim",
                    line=section.start_line,
                    section=name,
                )
            )
            extra_sections[name] = section.body
            continue
        context = DecodeContext(section=name)
        values[name] = decoder(section, context)
        warnings.extend(context.warnings)
        rows.update(context.rows)

    info = InfoSection(**values.pop("info"))
    return MapDocument(
        info=info,
        **values,
        extra_sections=extra_sections,
        source=SourceMap(sections=spans, rows=rows),
        warnings=warnings,
    )
