"""File descriptors — the guest-visible table of open host files.

A guest program running inside the simulator talks to files through
**file descriptors** (small integers), exactly like a Unix process.  The
numbers it sees are ours, not the host's:

1. ``allocate(name, flags)`` → reserve the lowest free descriptor.
2. ``bind_resource(fd, handle)`` → attach the opened host file.
3. ``lookup(fd)`` → find the entry (name, flags, handle, position).
4. ``release(fd)`` → close the host file and free the slot.

Key concepts:

- **Reserved channels**: descriptors 0, 1, 2 (stdin, stdout, stderr) are
  always present and never backed by a host file.  They are routed to
  the simulator console instead.
- **Bounded table**: at most ``capacity`` descriptors exist at once, so
  a guest can run out of descriptors just like a real process.
- **One name, one descriptor**: a file name may be open under at most
  one descriptor at a time.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import BinaryIO

from py_sysio.errors import ErrorKind

DEFAULT_MAX_FILES = 32


class FdError(Exception):
    """Raise when a descriptor table operation fails.

    Carries the ``ErrorKind`` so the syscall layer can report it
    without parsing the message.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        """Create an error of the given kind."""
        super().__init__(message)
        self.kind = kind


class OpenFlags(IntFlag):
    """Open flag bits as the guest passes them.

    The numeric values are part of the guest ABI.  The access mode lives
    in the low two bits (``ACCMODE``); the rest are modifiers.
    """

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    APPEND = 0x008
    CREAT = 0x200
    TRUNC = 0x400
    EXCL = 0x800

    ACCMODE = 0x003


class StdChannel(IntEnum):
    """The three reserved descriptors."""

    STDIN = 0
    STDOUT = 1
    STDERR = 2


class SeekWhence(IntEnum):
    """Reference point for seek operations (POSIX numbering).

    - SET — absolute offset from the beginning of the file.
    - CUR — relative offset from the current position.
    - END — relative offset from the end of the file.
    """

    SET = 0
    CUR = 1
    END = 2


RESERVED_COUNT = len(StdChannel)

_STD_FLAGS = {
    StdChannel.STDIN: OpenFlags.RDONLY,
    StdChannel.STDOUT: OpenFlags.WRONLY,
    StdChannel.STDERR: OpenFlags.WRONLY,
}


def access_mode(flags: int) -> int:
    """Return the access-mode bits of *flags*."""
    return flags & OpenFlags.ACCMODE


@dataclass
class DescriptorEntry:
    """Track an open descriptor's name, flags, host handle, and position.

    Not frozen — ``position`` advances with every read and write, and
    ``resource`` is attached after allocation.
    """

    descriptor: int
    name: str
    flags: OpenFlags
    resource: BinaryIO | None = None
    position: int = 0

    @property
    def is_reserved(self) -> bool:
        """Return True for stdin, stdout, and stderr."""
        return self.descriptor < RESERVED_COUNT

    @property
    def readable(self) -> bool:
        """Return True if the access mode permits reading."""
        return access_mode(self.flags) in (OpenFlags.RDONLY, OpenFlags.RDWR)

    @property
    def writable(self) -> bool:
        """Return True if the access mode permits writing."""
        return access_mode(self.flags) in (OpenFlags.WRONLY, OpenFlags.RDWR)


class DescriptorTable:
    """Fixed-capacity table mapping descriptor numbers to entries.

    Descriptors 0, 1, 2 are reserved for stdin, stdout, stderr and are
    installed on construction and on every ``reset()``.  Allocation
    always picks the lowest free number at or above ``RESERVED_COUNT``.
    """

    def __init__(self, capacity: int = DEFAULT_MAX_FILES) -> None:
        """Create a table with the reserved channels installed.

        Raises:
            ValueError: If *capacity* leaves no room for user descriptors.

        """
        if capacity <= RESERVED_COUNT:
            msg = f"Capacity must exceed {RESERVED_COUNT}, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._entries: dict[int, DescriptorEntry] = {}
        self._install_std_channels()

    @property
    def capacity(self) -> int:
        """Return the total number of slots, reserved ones included."""
        return self._capacity

    def _install_std_channels(self) -> None:
        for channel, flags in _STD_FLAGS.items():
            self._entries[channel] = DescriptorEntry(
                descriptor=channel,
                name=channel.name,
                flags=flags,
            )

    def reset(self) -> None:
        """Close every user descriptor and reinstall the reserved ones."""
        for fd in list(self._entries):
            with contextlib.suppress(OSError):
                self.release(fd)
        self._entries.clear()
        self._install_std_channels()

    def allocate(self, name: str, flags: OpenFlags) -> int:
        """Reserve the lowest free descriptor for *name*.

        Only records the entry; the host file is attached later with
        ``bind_resource``.

        Args:
            name: The guest-visible file name.
            flags: The open flags requested by the guest.

        Returns:
            The newly reserved descriptor number.

        Raises:
            FdError: If *name* is already open or the table is full.

        """
        if self.is_name_open(name):
            msg = f"File name {name} is already open."
            raise FdError(ErrorKind.NAME_ALREADY_OPEN, msg)

        fd = RESERVED_COUNT
        while fd in self._entries:
            fd += 1
        if fd >= self._capacity:
            msg = f"File name {name} exceeds maximum open file limit of {self._capacity}"
            raise FdError(ErrorKind.CAPACITY_EXCEEDED, msg)

        self._entries[fd] = DescriptorEntry(descriptor=fd, name=name, flags=OpenFlags(flags))
        return fd

    def bind_resource(self, fd: int, resource: BinaryIO) -> None:
        """Attach an opened host file to an allocated descriptor.

        Raises:
            FdError: If *fd* is not allocated or is a reserved channel.

        """
        entry = self.lookup(fd)
        if entry.is_reserved:
            msg = f"Cannot bind a host file to reserved descriptor {fd}"
            raise FdError(ErrorKind.INVALID_DESCRIPTOR, msg)
        entry.resource = resource

    def release(self, fd: int) -> None:
        """Close the host file behind *fd* and free the slot.

        Reserved and out-of-range descriptors are ignored: guest
        programs routinely close 0-2 or garbage unconditionally.
        """
        if fd < RESERVED_COUNT or fd >= self._capacity:
            return
        entry = self._entries.pop(fd, None)
        if entry is not None and entry.resource is not None:
            entry.resource.close()

    def lookup(self, fd: int) -> DescriptorEntry:
        """Return the entry for a given descriptor.

        Raises:
            FdError: If the descriptor is not allocated.

        """
        entry = self._entries.get(fd)
        if entry is None:
            msg = f"Bad file descriptor: {fd}"
            raise FdError(ErrorKind.INVALID_DESCRIPTOR, msg)
        return entry

    def is_name_open(self, name: str) -> bool:
        """Return True if *name* is open under any descriptor."""
        return any(entry.name == name for entry in self._entries.values())

    def is_usable_for(self, fd: int, access: OpenFlags) -> bool:
        """Return True if *fd* is allocated and its mode permits *access*.

        Args:
            fd: The descriptor number.
            access: ``RDONLY`` to ask about reading, ``WRONLY`` about
                writing, ``RDWR`` about both.

        """
        entry = self._entries.get(fd)
        if entry is None:
            return False
        match access_mode(access):
            case OpenFlags.RDONLY:
                return entry.readable
            case OpenFlags.WRONLY:
                return entry.writable
            case _:
                return entry.readable and entry.writable

    def list_descriptors(self) -> dict[int, DescriptorEntry]:
        """Return a snapshot of all allocated descriptors, reserved included."""
        return dict(sorted(self._entries.items()))

    def __contains__(self, fd: object) -> bool:
        """Return True if *fd* is allocated."""
        return fd in self._entries

    def __len__(self) -> int:
        """Return the number of allocated descriptors."""
        return len(self._entries)
