"""File syscalls on behalf of a simulated guest program.

``SystemIO`` is what a simulator's syscall dispatcher calls when the
guest executes ``open``, ``read``, ``write``, ``lseek``, ``close`` or
``fstat``.  It glues three pieces together:

1. the ``DescriptorTable`` (guest descriptor → host file),
2. the ``ConsoleBridge`` (descriptors 0-2 → simulator console),
3. the ``ErrorReporter`` (what went wrong last).

Guest code cannot catch Python exceptions, so nothing here raises.
Every handler that can fail returns ``-1``, records an ``ErrorKind``
plus a message, and writes an ERROR entry to the log.  Internal
``FdError`` and host ``OSError`` are converted at this boundary.

One instance belongs to one simulator.  Two simulators running side by
side each get their own ``SystemIO``; descriptor numbers and console
state are never shared.
"""

from __future__ import annotations

import os
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import BinaryIO

from py_sysio.config import SysioConfig
from py_sysio.errors import ErrorKind, ErrorReporter
from py_sysio.fs.fd import (
    RESERVED_COUNT,
    DescriptorEntry,
    DescriptorTable,
    FdError,
    OpenFlags,
    SeekWhence,
    StdChannel,
)
from py_sysio.fs.host import open_host_file
from py_sysio.io.console import ConsoleBridge, InputCancelledError
from py_sysio.logging import Logger, LogLevel

FAILURE = -1

# EOF (-1) as a char, repeated across a 32-bit int.
EOF_MARKER = b"\xff" * 4

STDIN_TITLE = "stdin"
STDIN_PROMPT = "Enter string"

_CONSOLE_OUTPUTS = (StdChannel.STDOUT, StdChannel.STDERR)


@dataclass(frozen=True)
class FileStatus:
    """Minimal status of an open descriptor, as returned by ``fstat``.

    Field names only; translating this into a target ABI ``struct stat``
    is left to the caller.
    """

    descriptor: int
    size: int
    is_console: bool
    flags: int
    position: int

    def to_dict(self) -> dict[str, int]:
        """Return the fields as plain ints."""
        return {
            "size": self.size,
            "is_console": int(self.is_console),
            "flags": self.flags,
            "position": self.position,
        }


class SystemIO:
    """The virtual file-descriptor subsystem of one simulator instance."""

    def __init__(
        self,
        *,
        config: SysioConfig | None = None,
        console: ConsoleBridge | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a subsystem with the reserved channels ready.

        Args:
            config: Limits and behaviour switches (defaults if None).
            console: Where descriptors 0-2 go (scripted/buffered if None).
            logger: Audit log to write to (a fresh one if None).

        """
        self.config = config if config is not None else SysioConfig()
        self.console = console if console is not None else ConsoleBridge()
        self.logger = logger if logger is not None else Logger()
        self._table = DescriptorTable(self.config.max_files)
        self._errors = ErrorReporter()

    # -- State -------------------------------------------------------------

    @property
    def table(self) -> DescriptorTable:
        """Return the descriptor table."""
        return self._table

    @property
    def last_error(self) -> str:
        """Return the last failure description."""
        return self._errors.message

    @property
    def last_error_kind(self) -> ErrorKind | None:
        """Return the last failure kind, or None after a successful open."""
        return self._errors.kind

    def reset(self) -> None:
        """Close every guest file and reinstall stdin, stdout, stderr.

        Called at simulator reset.  Idempotent.
        """
        self._table.reset()
        self._errors.clear()
        self.logger.log(LogLevel.INFO, "Descriptor table reset", source="sysio")

    def cancel_input(self) -> None:
        """Abort a pending console read (simulator stop)."""
        self.console.cancel()

    def _fail(self, kind: ErrorKind, message: str, fd: int | None = None) -> int:
        self._errors.report(kind, message)
        self.logger.log(LogLevel.ERROR, message, source="fd", descriptor=fd)
        return FAILURE

    def _emit(self, text: str, fd: int | None = None) -> None:
        try:
            self.console.emit(text)
        except Exception as e:  # noqa: BLE001
            # Console writes always succeed from the guest's point of view.
            self.logger.log(
                LogLevel.WARNING,
                f"Console output failed: {e}",
                source="console",
                descriptor=fd,
            )

    @staticmethod
    def _resource(entry: DescriptorEntry) -> BinaryIO:
        if entry.resource is None:
            msg = f"File descriptor {entry.descriptor} is a console channel"
            raise FdError(ErrorKind.INVALID_DESCRIPTOR, msg)
        return entry.resource

    # -- Syscalls ----------------------------------------------------------

    def open_file(self, name: str, flags: int) -> int:
        """Open a host file for the guest.

        Args:
            name: File name as the guest spelled it.
            flags: ``OpenFlags`` bits (access mode plus modifiers).

        Returns:
            The new descriptor, or -1 on failure.

        """
        try:
            fd = self._table.allocate(name, OpenFlags(flags))
        except FdError as e:
            return self._fail(e.kind, str(e))
        self._errors.clear()

        try:
            resource = open_host_file(name, flags, working_dir=self.config.working_dir)
        except FdError as e:
            self._table.release(fd)
            return self._fail(e.kind, str(e), fd)

        self._table.bind_resource(fd, resource)
        self._table.lookup(fd).position = resource.tell()
        self.logger.log(
            LogLevel.INFO,
            f"Opened {name} with flags {flags:#x}",
            source="fd",
            descriptor=fd,
        )
        return fd

    def read_from_file(self, fd: int, max_length: int, buffer: bytearray) -> int:
        """Read up to *max_length* bytes into *buffer*.

        *buffer* is replaced with the bytes read.  Descriptor 0 asks the
        console for a line instead; the count then includes the trailing
        newline the console appends.

        Returns:
            The number of bytes placed in *buffer*, 0 at end of file, or
            -1 on failure.

        """
        buffer.clear()
        if fd == StdChannel.STDIN:
            return self._read_console(max_length, buffer)

        if not self._table.is_usable_for(fd, OpenFlags.RDONLY):
            return self._fail(
                ErrorKind.NOT_OPEN_FOR_READ,
                f"File descriptor {fd} is not open for reading",
                fd,
            )
        entry = self._table.lookup(fd)
        try:
            resource = self._resource(entry)
            data = resource.read(max(max_length, 0)) or b""
            entry.position = resource.tell()
        except FdError as e:
            return self._fail(e.kind, str(e), fd)
        except OSError as e:
            return self._fail(ErrorKind.IO_FAILED, f"Read from {entry.name} failed: {e}", fd)

        if not data and max_length > 0 and self.config.legacy_eof_marker:
            data = EOF_MARKER
        buffer.extend(data)
        self.logger.log(LogLevel.DEBUG, f"Read {len(data)} bytes", source="fd", descriptor=fd)
        return len(data)

    def _read_console(self, max_length: int, buffer: bytearray) -> int:
        limit = min(max_length, self.config.input_limit)
        try:
            line = self.console.request_input(STDIN_TITLE, "", STDIN_PROMPT, limit)
        except InputCancelledError as e:
            return self._fail(
                ErrorKind.INPUT_CANCELLED,
                f"Read from stdin cancelled: {e}",
                StdChannel.STDIN,
            )
        data = line.encode(self.config.encoding)
        if len(data) > limit:
            # Multibyte input can outgrow the guest buffer once encoded.
            data = data[: limit - 1] + b"\n" if limit > 0 else b""
        buffer.extend(data)
        return len(data)

    def write_to_file(self, fd: int, data: bytes | str, length: int | None = None) -> int:
        """Write *data* (or its first *length* bytes) to a descriptor.

        Descriptors 1 and 2 go to the console and always report success.

        Returns:
            The number of bytes requested, or -1 on failure.

        """
        payload = data.encode(self.config.encoding) if isinstance(data, str) else bytes(data)
        requested = len(payload) if length is None else max(length, 0)
        payload = payload[:requested]

        if fd in _CONSOLE_OUTPUTS:
            self._emit(payload.decode(self.config.encoding, errors="replace"), fd)
            return requested

        if not self._table.is_usable_for(fd, OpenFlags.WRONLY):
            return self._fail(
                ErrorKind.NOT_OPEN_FOR_WRITE,
                f"File descriptor {fd} is not open for writing",
                fd,
            )
        entry = self._table.lookup(fd)
        try:
            resource = self._resource(entry)
            resource.write(payload)
            resource.flush()
            entry.position = resource.tell()
        except FdError as e:
            return self._fail(e.kind, str(e), fd)
        except OSError as e:
            return self._fail(ErrorKind.IO_FAILED, f"Write to {entry.name} failed: {e}", fd)

        self.logger.log(LogLevel.DEBUG, f"Wrote {len(payload)} bytes", source="fd", descriptor=fd)
        return requested

    def seek(self, fd: int, offset: int, whence: int) -> int:
        """Reposition a descriptor's stream.

        Args:
            fd: A descriptor open for reading.
            offset: Signed offset relative to *whence*.
            whence: ``SeekWhence`` value (0 = SET, 1 = CUR, 2 = END).

        Returns:
            The new absolute position, or -1 on failure.

        """
        if not self._table.is_usable_for(fd, OpenFlags.RDONLY):
            return self._fail(
                ErrorKind.NOT_OPEN_FOR_READ,
                f"File descriptor {fd} is not open for reading",
                fd,
            )
        try:
            reference = SeekWhence(whence)
        except ValueError:
            return self._fail(ErrorKind.INVALID_WHENCE, f"Invalid seek whence: {whence}", fd)

        entry = self._table.lookup(fd)
        try:
            resource = self._resource(entry)
            match reference:
                case SeekWhence.SET:
                    new_position = offset
                case SeekWhence.CUR:
                    new_position = entry.position + offset
                case SeekWhence.END:
                    new_position = os.fstat(resource.fileno()).st_size + offset
            if new_position < 0:
                return self._fail(
                    ErrorKind.NEGATIVE_OFFSET,
                    f"Seek on descriptor {fd} to negative offset {new_position}",
                    fd,
                )
            resource.seek(new_position)
        except FdError as e:
            return self._fail(e.kind, str(e), fd)
        except (OSError, OverflowError, ValueError) as e:
            return self._fail(ErrorKind.IO_FAILED, f"Seek on {entry.name} failed: {e}", fd)

        entry.position = new_position
        self.logger.log(
            LogLevel.DEBUG, f"Seek to {new_position}", source="fd", descriptor=fd
        )
        return new_position

    def close_file(self, fd: int) -> None:
        """Close a descriptor.

        Never fails and never touches the error reporter: closing 0-2,
        an unopened slot, or an out-of-range number does nothing.
        """
        if fd < RESERVED_COUNT or fd not in self._table:
            return
        name = self._table.lookup(fd).name
        try:
            self._table.release(fd)
        except OSError as e:
            self.logger.log(
                LogLevel.WARNING, f"Closing {name} failed: {e}", source="fd", descriptor=fd
            )
            return
        self.logger.log(LogLevel.INFO, f"Closed {name}", source="fd", descriptor=fd)

    def fstat(self, fd: int) -> FileStatus | None:
        """Return the status of a descriptor, or None on failure."""
        try:
            entry = self._table.lookup(fd)
            size = 0
            if not entry.is_reserved:
                size = os.fstat(self._resource(entry).fileno()).st_size
        except FdError as e:
            self._fail(e.kind, str(e), fd)
            return None
        except OSError as e:
            self._fail(ErrorKind.IO_FAILED, f"Stat of descriptor {fd} failed: {e}", fd)
            return None
        return FileStatus(
            descriptor=fd,
            size=size,
            is_console=entry.is_reserved,
            flags=int(entry.flags),
            position=entry.position,
        )

    def stat(self, fd: int, out_buffer: MutableMapping[str, int]) -> int:
        """Fill *out_buffer* with the status fields of a descriptor.

        Returns:
            0 on success, -1 on failure.

        """
        status = self.fstat(fd)
        if status is None:
            return FAILURE
        out_buffer.update(status.to_dict())
        return 0

    def print_string(self, text: str) -> None:
        """Print *text* on the console, like a print-string syscall."""
        self._emit(text)
