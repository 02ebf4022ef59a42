"""Structured trace events emitted while synchronizing notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SyncTracer(Protocol):
    """Receiver of named trace events with keyword fields."""

    def emit(self, event: str, **fields: Any) -> None: ...


class LoggingTracer:
    """Forward trace events to :mod:`logging` as ``DEBUG`` records.

    The fields are attached to the record under ``extra["trace"]`` so
    structured handlers can pick them up.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def emit(self, event: str, **fields: Any) -> None:
        self._logger.debug(
            "%s %s", event, fields, extra={"trace": {"event": event, **fields}}
        )


@dataclass
class TraceEvent:
    name: str
    fields: dict[str, Any] = field(default_factory=dict)


class RecordingTracer:
    """Tracer that keeps every event in memory, mostly for diagnostics."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append(TraceEvent(event, dict(fields)))

    def names(self) -> list[str]:
        return [event.name for event in self.events]


__all__ = ["SyncTracer", "LoggingTracer", "RecordingTracer", "TraceEvent"]
