"""Application layer: load map files, run the analyses and memoize results."""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console
from rich.logging import RichHandler

from minermap.core.accessibility import analyze_accessibility
from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import (
    Issue,
    MapStatistics,
    PathResult,
    Severity,
    count_by_severity,
)
from minermap.core.document import Coordinate, MapDocument
from minermap.core.errors import CancelToken, ParseError
from minermap.core.grid import TileGrid
from minermap.core.parser import parse
from minermap.core.pathfinding import PathFinder, drilling_cost
from minermap.core.statistics import compute_statistics
from minermap.core.validation import parse_error_issue, validate

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "WARNING"


class AnalysisReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: str
    fingerprint: str
    issues: list[Issue] = Field(default_factory=list)
    statistics: MapStatistics | None = None


@dataclass(frozen=True)
class _CacheEntry:
    fingerprint: str
    report: AnalysisReport
    document: MapDocument | None


def fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class AnalysisSession:
    """Holds the most recent analysis, keyed by a hash of the map text.

    A request for different text replaces the cached entry wholesale.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or resolve_config()
        self._entry: _CacheEntry | None = None

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def analyze(
        self,
        text: str,
        *,
        source: str = "<text>",
        cancel: CancelToken | None = None,
    ) -> AnalysisReport:
        entry = self._ensure(text, source=source, cancel=cancel)
        if entry.report.source != source:
            return entry.report.model_copy(update={"source": source})
        return entry.report

    def document(self, text: str) -> MapDocument | None:
        return self._ensure(text).document

    def find_path(
        self,
        text: str,
        start: Coordinate,
        end: Coordinate,
        *,
        drill: bool = False,
        cancel: CancelToken | None = None,
    ) -> PathResult | None:
        entry = self._ensure(text, cancel=cancel)
        if entry.document is None:
            return None
        grid = TileGrid.from_document(entry.document, tile_size=self._config.tile_size)
        cost_fn = drilling_cost(grid) if drill else None
        return PathFinder(grid, cost_fn).find_path(start, end, cancel=cancel)

    def invalidate(self) -> None:
        self._entry = None

    def _ensure(
        self,
        text: str,
        *,
        source: str = "<text>",
        cancel: CancelToken | None = None,
    ) -> _CacheEntry:
        key = fingerprint(text)
        if self._entry is not None and self._entry.fingerprint == key:
            logger.debug("Reusing cached analysis for %s", source)
            return self._entry

        logger.debug("Analyzing %s (%s)", source, key[:12])
        try:
            doc = parse(text)
        except ParseError as exc:
            logger.info("Parse failed for %s: %s", source, exc)
            report = AnalysisReport(
                source=source, fingerprint=key, issues=[parse_error_issue(exc)]
            )
            self._entry = _CacheEntry(key, report, None)
            return self._entry

        accessibility = analyze_accessibility(doc, config=self._config, cancel=cancel)
        issues = validate(
            doc, accessibility=accessibility, config=self._config, cancel=cancel
        )
        statistics = compute_statistics(
            doc, accessibility=accessibility, config=self._config, cancel=cancel
        )
        counts = count_by_severity(issues)
        logger.info(
            "%s: %d errors, %d warnings, %d info",
            source,
            counts[Severity.ERROR],
            counts[Severity.WARNING],
            counts[Severity.INFO],
        )
        report = AnalysisReport(
            source=source, fingerprint=key, issues=issues, statistics=statistics
        )
        self._entry = _CacheEntry(key, report, doc)
        return self._entry


def analyze_file(
    path: Path,
    *,
    session: AnalysisSession | None = None,
    cancel: CancelToken | None = None,
) -> AnalysisReport:
    session = session or AnalysisSession()
    text = path.read_text(encoding="utf-8", errors="replace")
    return session.analyze(text, source=str(path), cancel=cancel)


def resolve_config(
    *,
    tile_size: float | None = None,
    resource_limit: int | None = None,
) -> AnalysisConfig:
    tile_size = tile_size or _env_number("MINERMAP_TILE_SIZE", float)
    resource_limit = resource_limit or _env_number("MINERMAP_RESOURCE_LIMIT", int)
    return AnalysisConfig(
        tile_size=tile_size or DEFAULT_CONFIG.tile_size,
        resource_limit=resource_limit or DEFAULT_CONFIG.resource_limit,
    )


def configure_logging(level: str | None = None) -> None:
    name = (level or os.getenv("MINERMAP_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _env_number(name: str, kind: type) -> float | int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return kind(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return None
