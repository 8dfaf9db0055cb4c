"""Bind log — a structured record of what a load did.

Configuration loading runs once at startup, and when it goes wrong the
first question is always "which key did it read?".  Passing a
``Logger`` to ``load`` captures an entry per leaf field:

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, key).
- **Logger** — an append-only buffer with filtering and clearing.

The binder logs at DEBUG for each key it binds or skips, at INFO once
the record is built, and at ERROR for the failure that aborted a load.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries.

    Using IntEnum means levels compare with ``<`` / ``>`` naturally,
    which makes minimum-level filtering trivial.
    """

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "binder").
        key: The lookup key involved, or ``""`` for load-wide events.

    """

    level: LogLevel
    message: str
    source: str
    key: str = ""

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: KEY: message``."""
        if self.key:
            return f"[{self.level.name}] {self.source}: {self.key}: {self.message}"
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        key: str = "",
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.
            key: Lookup key associated with the event.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, key=key))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        key: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.
            key: If set, only return entries about this key.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        if key is not None:
            result = [e for e in result if e.key == key]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
