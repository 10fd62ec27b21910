"""Analysis report logging helpers (JSONL)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from minermap.app import AnalysisReport

SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)


def write_header(path: Path, metadata: dict[str, Any]) -> None:
    record: dict[str, Any] = {
        "type": "header",
        "schema_version": SCHEMA_VERSION,
        "created_at": _timestamp(),
        "metadata": metadata,
    }
    _append_record(path, record)


def append_report(path: Path, report: AnalysisReport) -> None:
    record: dict[str, Any] = {
        "type": "report",
        "schema_version": SCHEMA_VERSION,
        "report": report.model_dump(mode="json"),
    }
    _append_record(path, record)


def read_reports(path: Path) -> Iterator[AnalysisReport]:
    """Yield the reports in ``path``, skipping lines that are not JSON."""
    skipped = 0
    with path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                logger.debug("%s:%d is not a JSON record", path, number)
                continue
            if not isinstance(record, dict) or record.get("type") != "report":
                continue
            report = record.get("report")
            if report is not None:
                yield AnalysisReport.model_validate(report)
    if skipped:
        logger.warning("skipped %d unreadable line(s) in %s", skipped, path)


def _append_record(path: Path, record: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record) + "\n")


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")
