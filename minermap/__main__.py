"""Module entry point for `python -m minermap`."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console

from minermap.app import AnalysisSession, configure_logging, resolve_config
from minermap.core.contracts import HeatmapKind, has_errors
from minermap.db.report_log import append_report, write_header
from minermap.render.report import render_path, render_report

logger = logging.getLogger("minermap")


def _coordinate(value: str) -> tuple[int, int]:
    try:
        row, col = (int(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected ROW,COL, got '{value}'") from exc
    return row, col


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minermap", description="Validate and analyze cave map files."
    )
    parser.add_argument("paths", nargs="+", type=Path, help="Map files to analyze.")
    parser.add_argument(
        "--stats", action="store_true", help="Show statistics and difficulty."
    )
    parser.add_argument(
        "--heatmap",
        choices=[kind.value for kind in HeatmapKind],
        default=None,
        help="Render one of the heatmaps.",
    )
    parser.add_argument(
        "--path",
        nargs=2,
        type=_coordinate,
        metavar=("START", "END"),
        default=None,
        help="Find a path between two ROW,COL tiles.",
    )
    parser.add_argument(
        "--drill",
        action="store_true",
        help="Allow --path to cross drillable walls.",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print reports as JSON instead of tables."
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=None,
        help="Append reports to a JSONL log file.",
    )
    parser.add_argument(
        "--max-issues",
        type=int,
        default=None,
        help="Limit the number of issues shown per file.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any file has errors.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (defaults to MINERMAP_LOG_LEVEL or WARNING).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    console = Console()
    session = AnalysisSession(resolve_config())
    heatmap = HeatmapKind(args.heatmap) if args.heatmap else None

    if args.log is not None:
        write_header(args.log, metadata={"paths": [str(path) for path in args.paths]})

    failed = False
    for path in args.paths:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.error("Cannot read %s: %s", path, exc)
            failed = True
            continue

        report = session.analyze(text, source=str(path))
        failed = failed or has_errors(report.issues)
        if args.log is not None:
            append_report(args.log, report)

        if args.json:
            console.print_json(json.dumps(report.model_dump(mode="json")))
        else:
            console.print(
                render_report(
                    report,
                    show_stats=args.stats,
                    heatmap=heatmap,
                    max_issues=args.max_issues,
                )
            )
        if args.path is not None:
            start, end = args.path
            console.print(render_path(session.find_path(text, start, end, drill=args.drill)))

    return 1 if args.strict and failed else 0


if __name__ == "__main__":
    sys.exit(main())
