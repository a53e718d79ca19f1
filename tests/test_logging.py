"""Tests for the syscall audit log.

The logger records structured entries for opens, closes, resets, and
failures so the simulator can show what the guest did to its files.
"""

from pathlib import Path

from py_sysio.config import SysioConfig
from py_sysio.fs.fd import OpenFlags
from py_sysio.logging import LogEntry, Logger, LogLevel
from py_sysio.sysio import SystemIO


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure and formatting."""

    def test_entry_has_fields(self) -> None:
        """An entry stores level, message, source, and descriptor."""
        entry = LogEntry(level=LogLevel.INFO, message="opened", source="fd", descriptor=3)
        assert entry.level is LogLevel.INFO
        assert entry.message == "opened"
        assert entry.source == "fd"
        assert entry.descriptor == 3

    def test_str_with_descriptor(self) -> None:
        """The descriptor shows up next to the source."""
        entry = LogEntry(level=LogLevel.ERROR, message="boom", source="fd", descriptor=4)
        assert str(entry) == "[ERROR] fd(fd=4): boom"

    def test_str_without_descriptor(self) -> None:
        """Without a descriptor only the source is shown."""
        entry = LogEntry(level=LogLevel.INFO, message="reset", source="sysio")
        assert str(entry) == "[INFO] sysio: reset"


class TestLogger:
    """Verify append, filtering, and clearing."""

    def test_log_appends(self) -> None:
        """Entries come back in order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "one", source="fd")
        logger.log(LogLevel.ERROR, "two", source="console")
        assert [e.message for e in logger.entries] == ["one", "two"]

    def test_min_level_drops_quiet_entries(self) -> None:
        """Entries below the logger's threshold are never stored."""
        logger = Logger(min_level=LogLevel.INFO)
        logger.log(LogLevel.DEBUG, "noise", source="fd")
        logger.log(LogLevel.INFO, "kept", source="fd")
        assert [e.message for e in logger.entries] == ["kept"]

    def test_filter(self) -> None:
        """Filtering by level, source, and descriptor combines."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "a", source="fd", descriptor=3)
        logger.log(LogLevel.ERROR, "b", source="fd", descriptor=3)
        logger.log(LogLevel.ERROR, "c", source="fd", descriptor=4)
        logger.log(LogLevel.WARNING, "d", source="console")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == ["b", "c", "d"]
        assert [e.message for e in logger.filter(source="console")] == ["d"]
        assert [e.message for e in logger.filter(descriptor=3)] == ["a", "b"]

    def test_lines_and_clear(self) -> None:
        """lines() formats every entry; clear() empties the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="sysio")
        assert logger.lines() == ["[INFO] sysio: x"]
        logger.clear()
        assert logger.entries == []


class TestSyscallLogging:
    """Verify SystemIO writes to an injected logger."""

    def test_open_close_logged(self, tmp_path: Path) -> None:
        """Open and close leave INFO entries about the descriptor."""
        logger = Logger()
        sysio = SystemIO(config=SysioConfig(working_dir=tmp_path), logger=logger)
        fd = sysio.open_file("a.txt", OpenFlags.WRONLY | OpenFlags.CREAT)
        sysio.close_file(fd)
        messages = [e.message for e in logger.filter(min_level=LogLevel.INFO, descriptor=fd)]
        assert messages == ["Opened a.txt with flags 0x201", "Closed a.txt"]

    def test_reset_logged(self) -> None:
        """reset() is recorded."""
        logger = Logger()
        SystemIO(logger=logger).reset()
        assert logger.lines() == ["[INFO] sysio: Descriptor table reset"]
