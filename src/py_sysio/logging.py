"""Audit log for the file syscalls.

Every open, close, reset, and failure is recorded as a structured
entry, much like a kernel ring buffer (``dmesg``).  The simulator UI
can show it next to the guest's own output, and tests can assert on it
without capturing stdout.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single record (level, message, source, descriptor).
- **Logger** — an append-only buffer with filtering and clearing.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

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
        source: The component that generated the event ("fd", "console").
        descriptor: The guest descriptor involved, if any.

    """

    level: LogLevel
    message: str
    source: str
    descriptor: int | None = None

    def __str__(self) -> str:
        """Format as ``[LEVEL] source(fd=N): message``."""
        where = self.source if self.descriptor is None else f"{self.source}(fd={self.descriptor})"
        return f"[{self.level.name}] {where}: {self.message}"


class Logger:
    """Append-only log buffer with filtering.

    ``min_level`` drops anything less severe at the door, so a
    long-running simulation can keep DEBUG traffic out of the buffer.
    """

    def __init__(self, *, min_level: LogLevel = LogLevel.DEBUG) -> None:
        """Create an empty logger that keeps entries at or above *min_level*."""
        self._entries: list[LogEntry] = []
        self.min_level = min_level

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
        descriptor: int | None = None,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.
            descriptor: Guest descriptor associated with the event.

        """
        if level < self.min_level:
            return
        self._entries.append(
            LogEntry(level=level, message=message, source=source, descriptor=descriptor)
        )

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        descriptor: int | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.
            descriptor: If set, only return entries about this descriptor.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        if descriptor is not None:
            result = [e for e in result if e.descriptor == descriptor]
        return result

    def lines(self) -> list[str]:
        """Return every entry formatted as a display line."""
        return [str(e) for e in self._entries]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
