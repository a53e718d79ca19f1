"""Tests for the last-error slot the file syscalls report through."""

from py_sysio.errors import OK_MESSAGE, ErrorKind, ErrorReporter


class TestErrorKind:
    """Verify the error kinds."""

    def test_every_failure_has_a_kind(self) -> None:
        """The ten guest-visible kinds plus the two host-side ones exist."""
        expected_count = 12
        assert len(ErrorKind) == expected_count
        assert ErrorKind.NAME_ALREADY_OPEN == "name_already_open"
        assert ErrorKind.NEGATIVE_OFFSET == "negative_offset"


class TestErrorReporter:
    """Verify report, overwrite, and clear."""

    def test_starts_ok(self) -> None:
        """A new reporter holds the OK message and no kind."""
        reporter = ErrorReporter()
        assert reporter.kind is None
        assert reporter.message == OK_MESSAGE == "File operation OK"

    def test_report_overwrites(self) -> None:
        """Each report replaces the previous one."""
        reporter = ErrorReporter()
        reporter.report(ErrorKind.NOT_FOUND, "first")
        reporter.report(ErrorKind.INVALID_WHENCE, "second")
        assert reporter.kind is ErrorKind.INVALID_WHENCE
        assert reporter.message == "second"

    def test_clear(self) -> None:
        """clear() returns to the OK state."""
        reporter = ErrorReporter()
        reporter.report(ErrorKind.OPEN_FAILED, "nope")
        reporter.clear()
        assert reporter.kind is None
        assert reporter.message == OK_MESSAGE
