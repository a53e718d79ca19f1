"""File subsystem — the descriptor table and host file access.

Re-exports public symbols so callers can write::

    from py_sysio.fs import DescriptorTable, OpenFlags
"""

from py_sysio.fs.fd import (
    DEFAULT_MAX_FILES,
    RESERVED_COUNT,
    DescriptorEntry,
    DescriptorTable,
    FdError,
    OpenFlags,
    SeekWhence,
    StdChannel,
)
from py_sysio.fs.host import host_open_flags, open_host_file, resolve_path

__all__ = [
    "DEFAULT_MAX_FILES",
    "RESERVED_COUNT",
    "DescriptorEntry",
    "DescriptorTable",
    "FdError",
    "OpenFlags",
    "SeekWhence",
    "StdChannel",
    "host_open_flags",
    "open_host_file",
    "resolve_path",
]
