"""
Event recorder — the log sink the setup engine writes to.

The engine only ever calls ``record(level, message, **fields)`` and
never looks at the return value. ``LoggingRecorder`` forwards to the
standard ``logging`` tree; ``MemoryRecorder`` keeps events in a list
so tests can assert on them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from devsetup.core.observability.logging_config import parse_level


class EventRecorder(Protocol):
    def record(self, level: str | int, message: str, **fields: Any) -> None: ...


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)


class LoggingRecorder:
    """Forward events to a ``logging.Logger``.

    Fields are appended to the message as ``key=value`` pairs and also
    attached to the record as ``fields`` for structured handlers.
    """

    def __init__(self, name: str = "devsetup"):
        self._logger = logging.getLogger(name)

    def record(self, level: str | int, message: str, **fields: Any) -> None:
        numeric = parse_level(level)
        if fields:
            self._logger.log(
                numeric, "%s  %s", message, _format_fields(fields), extra={"fields": fields}
            )
        else:
            self._logger.log(numeric, "%s", message, extra={"fields": {}})


@dataclass
class RecordedEvent:
    level: int
    message: str
    fields: dict[str, Any] = field(default_factory=dict)


class MemoryRecorder:
    """Keep every event in memory. Optionally forwards to another recorder."""

    def __init__(self, forward: EventRecorder | None = None):
        self.events: list[RecordedEvent] = []
        self._forward = forward

    def record(self, level: str | int, message: str, **fields: Any) -> None:
        self.events.append(RecordedEvent(parse_level(level), message, dict(fields)))
        if self._forward is not None:
            self._forward.record(level, message, **fields)

    def messages(self, level: str | int | None = None) -> list[str]:
        if level is None:
            return [e.message for e in self.events]
        numeric = parse_level(level)
        return [e.message for e in self.events if e.level == numeric]
