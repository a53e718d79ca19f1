"""Error reporting for the file syscalls.

Guest-facing syscalls never raise.  A failing call returns ``-1`` and
leaves a human-readable description behind, the way C code leaves
``errno`` and ``strerror()``.  The ``ErrorReporter`` is that slot: it
remembers the last failure until the next one (or the next successful
allocation) overwrites it.

The message is diagnostic only.  Callers that need to branch on the
failure should look at ``kind``, never parse ``message``.
"""

from enum import StrEnum

OK_MESSAGE = "File operation OK"


class ErrorKind(StrEnum):
    """Every way a file syscall can fail."""

    NAME_ALREADY_OPEN = "name_already_open"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_FOUND = "not_found"
    CREATE_FAILED = "create_failed"
    OPEN_FAILED = "open_failed"
    NOT_OPEN_FOR_READ = "not_open_for_read"
    NOT_OPEN_FOR_WRITE = "not_open_for_write"
    INVALID_DESCRIPTOR = "invalid_descriptor"
    INVALID_WHENCE = "invalid_whence"
    NEGATIVE_OFFSET = "negative_offset"
    INPUT_CANCELLED = "input_cancelled"
    IO_FAILED = "io_failed"


class ErrorReporter:
    """Hold the most recent failure description.

    Not thread-local: one reporter belongs to one simulator instance.
    """

    def __init__(self) -> None:
        """Start in the OK state."""
        self._kind: ErrorKind | None = None
        self._message = OK_MESSAGE

    @property
    def kind(self) -> ErrorKind | None:
        """Return the kind of the last failure, or None after a success."""
        return self._kind

    @property
    def message(self) -> str:
        """Return the last failure description."""
        return self._message

    def report(self, kind: ErrorKind, message: str) -> None:
        """Record a failure, overwriting the previous one."""
        self._kind = kind
        self._message = message

    def clear(self) -> None:
        """Reset to the OK state."""
        self._kind = None
        self._message = OK_MESSAGE
