"""Errors and cooperative cancellation."""

from __future__ import annotations

import threading


class ParseError(ValueError):
    """Fatal failure to build a MapDocument from text."""

    def __init__(
        self, message: str, *, line: int | None = None, section: str | None = None
    ) -> None:
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{location}{message}")
        self.message = message
        self.line = line
        self.section = section


class AnalysisCancelled(RuntimeError):
    pass


class CancelToken:
    """Flag shared between a caller and a long-running analysis."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled("analysis cancelled")


def check_cancelled(cancel: CancelToken | None) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()
