"""Issue and analysis result contracts."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from minermap.core.document import Coordinate


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueKind(str, Enum):
    PARSE = "parse"
    STRUCTURAL = "structural"
    SEMANTIC = "semantic"
    DECODE = "decode"


class Issue(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    severity: Severity
    kind: IssueKind
    category: str
    message: str
    line: int | None = None
    column: int | None = None
    section: str | None = None


def count_by_severity(issues: list[Issue]) -> dict[Severity, int]:
    counts = {severity: 0 for severity in Severity}
    for issue in issues:
        counts[issue.severity] += 1
    return counts


def has_errors(issues: list[Issue]) -> bool:
    return any(issue.severity is Severity.ERROR for issue in issues)


class PathResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: list[Coordinate]
    cost: float

    @property
    def length(self) -> int:
        return len(self.path)


class IsolatedRegion(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tiles: list[Coordinate]
    size: int
    centroid: tuple[float, float]
    has_resources: bool = False


class CriticalPath(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    start: Coordinate
    target: Coordinate
    path: PathResult | None = None
    bottlenecks: list[Coordinate] = Field(default_factory=list)


class AccessibilityResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    reachability_map: list[list[int]]
    seeds: list[Coordinate]
    ignored_seeds: list[Coordinate] = Field(default_factory=list)
    unreachable_areas: list[Coordinate] = Field(default_factory=list)
    isolated_regions: list[IsolatedRegion] = Field(default_factory=list)
    chokepoints: list[Coordinate] = Field(default_factory=list)
    critical_paths: list[CriticalPath] = Field(default_factory=list)
    passable_tiles: int = 0
    reachable_tiles: int = 0

    @property
    def reachable_percentage(self) -> float:
        if self.passable_tiles == 0:
            return 0.0
        return self.reachable_tiles / self.passable_tiles * 100

    def is_reachable(self, tile: Coordinate) -> bool:
        row, col = tile
        if not 0 <= row < len(self.reachability_map):
            return False
        cells = self.reachability_map[row]
        return 0 <= col < len(cells) and cells[col] >= 0


class TileCount(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tile_id: int
    name: str
    category: str
    count: int
    percentage: float


class ResourceCluster(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tiles: list[Coordinate]
    total_yield: int
    centroid: tuple[float, float]


class ResourceSummary(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    resource: str
    total: int
    tile_count: int
    average_per_tile: float
    clusters: list[ResourceCluster] = Field(default_factory=list)


class AccessibilityScore(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    reachable_area: float
    isolated_regions: int
    chokepoints: int
    average_path_width: float
    overall_score: float


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"


class DifficultyFactors(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    resource_availability: float
    accessible_area: float
    drill_difficulty: float
    hazard_density: float
    objective_complexity: float

    def average(self) -> float:
        values = list(self.model_dump().values())
        return sum(values) / len(values)


class DifficultyEstimate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    score: float
    level: DifficultyLevel
    factors: DifficultyFactors
    recommendations: list[str] = Field(default_factory=list)


class BalanceMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    resource_to_hazard_ratio: float
    open_to_wall_ratio: float
    path_complexity: float
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class HeatmapKind(str, Enum):
    RESOURCE = "resource"
    DIFFICULTY = "difficulty"
    ACCESSIBILITY = "accessibility"


class MapStatistics(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    rows: int
    cols: int
    tile_distribution: list[TileCount] = Field(default_factory=list)
    resources: list[ResourceSummary] = Field(default_factory=list)
    accessibility: AccessibilityScore
    difficulty: DifficultyEstimate
    balance: BalanceMetrics
    heatmaps: dict[HeatmapKind, list[list[int]]] = Field(default_factory=dict)

    def resource(self, name: str) -> ResourceSummary | None:
        for summary in self.resources:
            if summary.resource == name:
                return summary
        return None
