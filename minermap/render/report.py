"""Rich rendering for analysis reports."""

from __future__ import annotations

from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from minermap.app import AnalysisReport
from minermap.core.contracts import (
    HeatmapKind,
    Issue,
    MapStatistics,
    PathResult,
    Severity,
    count_by_severity,
)

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

HEAT_SHADES = (
    (1, "░", "blue"),
    (25, "▒", "green3"),
    (50, "▓", "yellow"),
    (75, "█", "red"),
)


def render_report(
    report: AnalysisReport,
    *,
    show_stats: bool = False,
    heatmap: HeatmapKind | None = None,
    max_issues: int | None = None,
) -> RenderableType:
    parts: list[RenderableType] = [
        _render_summary(report),
        render_issues(report.issues, max_issues=max_issues),
    ]
    if report.statistics is not None and show_stats:
        parts.append(render_statistics(report.statistics))
    if report.statistics is not None and heatmap is not None:
        values = report.statistics.heatmaps.get(heatmap)
        if values is not None:
            parts.append(render_heatmap(values, title=f"{heatmap.value.title()} Heatmap"))
    return Panel(Group(*parts), title=report.source)


def _render_summary(report: AnalysisReport) -> RenderableType:
    counts = count_by_severity(report.issues)
    summary = Text()
    for severity in Severity:
        if summary:
            summary.append("  ")
        summary.append(f"{counts[severity]} {severity.value}", style=SEVERITY_STYLES[severity])
    return summary


def render_issues(issues: list[Issue], *, max_issues: int | None = None) -> RenderableType:
    table = Table(title="Issues", show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Line", justify="right")
    table.add_column("Category")
    table.add_column("Message")

    shown = issues if max_issues is None else issues[:max_issues]
    for issue in shown:
        table.add_row(
            Text(issue.severity.value, style=SEVERITY_STYLES[issue.severity]),
            "-" if issue.line is None else str(issue.line),
            issue.category,
            issue.message,
        )
    if not issues:
        table.add_row("-", "-", "-", "No issues")
    elif len(shown) < len(issues):
        table.add_row("-", "-", "-", f"... {len(issues) - len(shown)} more")
    return table


def render_statistics(statistics: MapStatistics) -> RenderableType:
    overview = Table(title="Overview", show_header=False)
    overview.add_column("Field")
    overview.add_column("Value")
    overview.add_row("Size", f"{statistics.rows} x {statistics.cols}")
    access = statistics.accessibility
    overview.add_row("Reachable", f"{access.reachable_area:.1f}%")
    overview.add_row("Isolated regions", str(access.isolated_regions))
    overview.add_row("Chokepoints", str(access.chokepoints))
    overview.add_row("Avg path width", f"{access.average_path_width:.2f}")
    overview.add_row(
        "Difficulty",
        f"{statistics.difficulty.level.value} ({statistics.difficulty.score:.0f})",
    )

    factors = Table(title="Difficulty Factors", show_header=True, header_style="bold")
    factors.add_column("Factor")
    factors.add_column("Score", justify="right")
    for name, value in statistics.difficulty.factors.model_dump().items():
        factors.add_row(name.replace("_", " "), f"{value:.0f}")

    resources = Table(title="Resources", show_header=True, header_style="bold")
    resources.add_column("Resource")
    resources.add_column("Total", justify="right")
    resources.add_column("Tiles", justify="right")
    resources.add_column("Clusters", justify="right")
    for summary in statistics.resources:
        resources.add_row(
            summary.resource,
            str(summary.total),
            str(summary.tile_count),
            str(len(summary.clusters)),
        )
    if not statistics.resources:
        resources.add_row("-", "0", "0", "0")

    notes = statistics.difficulty.recommendations + statistics.balance.suggestions
    body: list[RenderableType] = [Columns([overview, factors, resources])]
    if notes:
        body.append(Text("\n".join(f"- {note}" for note in notes)))
    return Panel(Group(*body), title="Statistics")


def render_heatmap(values: list[list[int]], *, title: str = "Heatmap") -> RenderableType:
    text = Text()
    for index, row in enumerate(values):
        if index:
            text.append("\n")
        for value in row:
            char, style = _shade(value)
            text.append(char, style=style)
    return Panel(text, title=title, expand=False)


def render_path(path: PathResult | None) -> RenderableType:
    if path is None:
        return Text("No path found.", style="red")
    steps = " -> ".join(f"({row},{col})" for row, col in path.path)
    return Text(f"Cost {path.cost:g} over {path.length} tiles: {steps}")


def _shade(value: int) -> tuple[str, str]:
    char, style = " ", "grey23"
    for threshold, shade, shade_style in HEAT_SHADES:
        if value >= threshold:
            char, style = shade, shade_style
    return char, style
