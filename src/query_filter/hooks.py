"""
Observability hooks for filter compilation.

A compiler receives its observers explicitly; there is no process-wide
registry. Each observer is a plain callable receiving a
:class:`CompilationEvent`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

FIELD_SKIPPED = "field.skipped"
FIELD_COMPILED = "field.compiled"
JOIN_CREATED = "join.created"
JOIN_REUSED = "join.reused"
COMPILATION_COMPLETED = "compilation.completed"
COMPILATION_FAILED = "compilation.failed"


@dataclass(frozen=True)
class CompilationEvent:
    """
    Structured event emitted while a filter is compiled.

    Attributes:
        name: Event name, one of the module-level constants.
        filter_type: Name of the filter class being compiled.
        entity: Name of the target entity.
        attributes: Event-specific payload (field name, operator, path...).
    """

    name: str
    filter_type: str
    entity: str
    attributes: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class CompilationObserver(Protocol):
    """Receives compilation events. Must not raise."""

    def __call__(self, event: CompilationEvent) -> None: ...


class LoggingObserver:
    """Forward compilation events to a logger."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        self._logger = logger or logging.getLogger("query_filter.events")
        self._level = level

    def __call__(self, event: CompilationEvent) -> None:
        if not self._logger.isEnabledFor(self._level):
            return
        self._logger.log(
            self._level,
            "%s filter=%s entity=%s %s",
            event.name,
            event.filter_type,
            event.entity,
            event.attributes,
        )


class RecordingObserver:
    """Keep every event in memory. Handy for tests and debugging."""

    def __init__(self) -> None:
        self.events: list[CompilationEvent] = []

    def __call__(self, event: CompilationEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()
