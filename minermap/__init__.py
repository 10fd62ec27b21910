"""Parse and analyze tile-grid cave level files."""

from minermap.core import (
    AccessibilityResult,
    AnalysisCancelled,
    CancelToken,
    Issue,
    MapDocument,
    MapStatistics,
    ParseError,
    PathResult,
    Severity,
    analyze_accessibility,
    compute_statistics,
    find_path,
    parse,
    serialize,
    validate,
)

__all__ = [
    "AccessibilityResult",
    "AnalysisCancelled",
    "CancelToken",
    "Issue",
    "MapDocument",
    "MapStatistics",
    "ParseError",
    "PathResult",
    "Severity",
    "analyze_accessibility",
    "compute_statistics",
    "find_path",
    "parse",
    "serialize",
    "validate",
]
