"""Configuration for one file-syscall subsystem instance.

A ``SysioConfig`` is frozen: it is chosen when a simulator instance is
built and does not change while a guest runs.  It can be saved to and
loaded from JSON so a headless harness can ship its settings next to
the guest binaries.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from py_sysio.fs.fd import DEFAULT_MAX_FILES, RESERVED_COUNT

DEFAULT_INPUT_LIMIT = 128


@dataclass(frozen=True)
class SysioConfig:
    """Settings for a ``SystemIO`` instance.

    Attributes:
        max_files: Descriptor table capacity, reserved channels included.
        input_limit: Upper bound on the length passed to the console
            when the guest reads descriptor 0.
        legacy_eof_marker: Append four ``0xFF`` bytes on an empty read
            instead of returning 0, for guests built against the old
            reference simulator.
        working_dir: Directory relative guest file names resolve
            against; None means the host process's current directory.
        encoding: Text encoding used at the console boundary.

    """

    max_files: int = DEFAULT_MAX_FILES
    input_limit: int = DEFAULT_INPUT_LIMIT
    legacy_eof_marker: bool = False
    working_dir: Path | None = None
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate the settings.

        Raises:
            ValueError: If a limit is out of range.

        """
        if self.max_files <= RESERVED_COUNT:
            msg = f"max_files must exceed {RESERVED_COUNT}, got {self.max_files}"
            raise ValueError(msg)
        if self.input_limit < 1:
            msg = f"input_limit must be at least 1, got {self.input_limit}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data = dataclasses.asdict(self)
        data["working_dir"] = None if self.working_dir is None else str(self.working_dir)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SysioConfig:
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if values.get("working_dir") is not None:
            values["working_dir"] = Path(values["working_dir"])
        return cls(**values)


def dump_config(config: SysioConfig, path: Path) -> None:
    """Save a config to a JSON file."""
    path.write_text(json.dumps(config.to_dict(), indent=2))


def load_config(path: Path) -> SysioConfig:
    """Load a config from a JSON file.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: If a setting is out of range.

    """
    data = json.loads(path.read_text())
    return SysioConfig.from_dict(data)
