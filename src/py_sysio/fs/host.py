"""Host-side file opening.

The guest passes its own flag bits (``OpenFlags``); the host has its
own (``os.O_*``).  This module translates between them and turns the
host's ``OSError`` family into ``FdError`` with the right kind:

- target missing and no ``CREAT`` → ``NOT_FOUND``
- ``CREAT`` requested but the file could not be made → ``CREATE_FAILED``
- anything else (permissions, directories, ...) → ``OPEN_FAILED``
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

from py_sysio.errors import ErrorKind
from py_sysio.fs.fd import FdError, OpenFlags, access_mode

_ACCESS_TO_HOST = {
    OpenFlags.RDONLY: os.O_RDONLY,
    OpenFlags.WRONLY: os.O_WRONLY,
    OpenFlags.RDWR: os.O_RDWR,
}

_MODIFIERS_TO_HOST = (
    (OpenFlags.APPEND, os.O_APPEND),
    (OpenFlags.CREAT, os.O_CREAT),
    (OpenFlags.TRUNC, os.O_TRUNC),
    (OpenFlags.EXCL, os.O_EXCL),
)

_FILE_PERMISSIONS = 0o644


def host_open_flags(flags: int) -> int:
    """Translate guest open flags into ``os.open`` flags.

    An unknown access mode (both low bits set) is treated as read-write.
    """
    host = _ACCESS_TO_HOST.get(access_mode(flags), os.O_RDWR)
    for guest_bit, host_bit in _MODIFIERS_TO_HOST:
        if flags & guest_bit:
            host |= host_bit
    return host | getattr(os, "O_BINARY", 0)


def _python_mode(flags: int) -> str:
    match access_mode(flags):
        case OpenFlags.RDONLY:
            return "rb"
        case OpenFlags.WRONLY:
            return "ab" if flags & OpenFlags.APPEND else "wb"
        case _:
            return "a+b" if flags & OpenFlags.APPEND else "r+b"


def resolve_path(name: str, working_dir: Path | None) -> Path:
    """Resolve a guest file name against the simulator working directory."""
    path = Path(name)
    if working_dir is None or path.is_absolute():
        return path
    return working_dir / path


def open_host_file(name: str, flags: int, *, working_dir: Path | None = None) -> BinaryIO:
    """Open *name* on the host with the guest's *flags*.

    Args:
        name: The guest-supplied file name.
        flags: Guest ``OpenFlags`` bits.
        working_dir: Directory relative names are resolved against.

    Returns:
        An unbuffered binary file object.

    Raises:
        FdError: With kind NOT_FOUND, CREATE_FAILED, or OPEN_FAILED.

    """
    path = resolve_path(name, working_dir)
    create = bool(flags & OpenFlags.CREAT)
    if path.is_dir():
        msg = f"File {name} could not be opened: is a directory"
        raise FdError(ErrorKind.OPEN_FAILED, msg)
    try:
        fd = os.open(path, host_open_flags(flags), _FILE_PERMISSIONS)
    except FileNotFoundError as e:
        if create:
            msg = f"Could not create file {name}: {e.strerror}"
            raise FdError(ErrorKind.CREATE_FAILED, msg) from e
        msg = f"File not found: {name}"
        raise FdError(ErrorKind.NOT_FOUND, msg) from e
    except FileExistsError as e:
        msg = f"Could not create file {name}: already exists"
        raise FdError(ErrorKind.CREATE_FAILED, msg) from e
    except OSError as e:
        if create and not path.exists():
            msg = f"Could not create file {name}: {e.strerror}"
            raise FdError(ErrorKind.CREATE_FAILED, msg) from e
        msg = f"File {name} could not be opened: {e.strerror}"
        raise FdError(ErrorKind.OPEN_FAILED, msg) from e
    except ValueError as e:
        # Names the host cannot represent, e.g. embedded NUL bytes.
        msg = f"File {name!r} could not be opened: {e}"
        raise FdError(ErrorKind.OPEN_FAILED, msg) from e
    return open(fd, _python_mode(flags), buffering=0)  # noqa: SIM115
