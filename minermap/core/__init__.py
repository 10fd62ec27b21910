"""Map parsing, validation and analysis core."""

from minermap.core.accessibility import analyze_accessibility
from minermap.core.config import DEFAULT_CONFIG, AnalysisConfig
from minermap.core.contracts import (
    AccessibilityResult,
    HeatmapKind,
    Issue,
    IssueKind,
    MapStatistics,
    PathResult,
    Severity,
)
from minermap.core.document import MapDocument
from minermap.core.errors import AnalysisCancelled, CancelToken, ParseError
from minermap.core.grid_validator import validate_grids
from minermap.core.parser import parse
from minermap.core.pathfinding import PathFinder, drilling_cost, find_path, walking_cost
from minermap.core.serializer import serialize
from minermap.core.statistics import compute_statistics
from minermap.core.validation import validate, validate_text

__all__ = [
    "AccessibilityResult",
    "AnalysisCancelled",
    "AnalysisConfig",
    "CancelToken",
    "DEFAULT_CONFIG",
    "HeatmapKind",
    "Issue",
    "IssueKind",
    "MapDocument",
    "MapStatistics",
    "ParseError",
    "PathFinder",
    "PathResult",
    "Severity",
    "analyze_accessibility",
    "compute_statistics",
    "drilling_cost",
    "find_path",
    "parse",
    "serialize",
    "validate",
    "validate_grids",
    "validate_text",
    "walking_cost",
]
