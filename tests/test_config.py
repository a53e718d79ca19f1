"""Tests for subsystem configuration and its JSON persistence."""

from pathlib import Path

import pytest

from py_sysio.config import DEFAULT_INPUT_LIMIT, SysioConfig, dump_config, load_config
from py_sysio.fs.fd import DEFAULT_MAX_FILES, OpenFlags
from py_sysio.sysio import FAILURE, SystemIO


class TestSysioConfig:
    """Verify defaults and validation."""

    def test_defaults(self) -> None:
        """Defaults match the classic simulator limits."""
        config = SysioConfig()
        assert config.max_files == DEFAULT_MAX_FILES == 32
        assert config.input_limit == DEFAULT_INPUT_LIMIT == 128
        assert config.legacy_eof_marker is False
        assert config.working_dir is None
        assert config.encoding == "utf-8"

    def test_max_files_must_leave_room(self) -> None:
        """A table with only the reserved channels is rejected."""
        with pytest.raises(ValueError, match="max_files"):
            SysioConfig(max_files=3)

    def test_input_limit_positive(self) -> None:
        """The input limit must be at least one."""
        with pytest.raises(ValueError, match="input_limit"):
            SysioConfig(input_limit=0)

    def test_from_dict_ignores_unknown_keys(self) -> None:
        """Unknown keys are dropped; working_dir becomes a Path."""
        config = SysioConfig.from_dict({"max_files": 8, "working_dir": "/tmp/x", "colour": "red"})
        assert config.max_files == 8
        assert config.working_dir == Path("/tmp/x")

    def test_max_files_sizes_the_table(self, tmp_path: Path) -> None:
        """A smaller table runs out of descriptors sooner."""
        sysio = SystemIO(config=SysioConfig(max_files=4, working_dir=tmp_path))
        flags = OpenFlags.WRONLY | OpenFlags.CREAT
        assert sysio.open_file("a", flags) == 3
        assert sysio.open_file("b", flags) == FAILURE


class TestConfigPersistence:
    """Verify JSON save and load."""

    def test_dump_and_load_round_trip(self, tmp_path: Path) -> None:
        """A saved config loads back equal."""
        config = SysioConfig(max_files=16, legacy_eof_marker=True, working_dir=tmp_path)
        path = tmp_path / "sysio.json"
        dump_config(config, path)
        assert load_config(path) == config

    def test_load_missing_raises(self, tmp_path: Path) -> None:
        """Loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")
