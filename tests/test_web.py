"""Tests for the browser console.

The web app plays the console boundary: it buffers guest output for the
browser and queues browser input for the guest's stdin.  Tests use
``pytest.importorskip`` so they are skipped when Flask is not installed.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

import pytest

flask = pytest.importorskip("flask")

from py_sysio.config import SysioConfig  # noqa: E402
from py_sysio.fs.fd import OpenFlags, StdChannel  # noqa: E402
from py_sysio.sysio import FAILURE, SystemIO  # noqa: E402
from py_sysio.web.app import EXTENSION_KEY, WebConsole, create_app  # noqa: E402

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
WAIT_SECONDS = 5.0


def _app(tmp_path: Path) -> tuple[Any, SystemIO]:
    """Create a test client and the SystemIO behind it."""
    app = create_app(SysioConfig(working_dir=tmp_path), input_timeout=WAIT_SECONDS)
    app.config["TESTING"] = True
    return app.test_client(), app.extensions[EXTENSION_KEY]


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        assert isinstance(create_app(), flask.Flask)

    def test_console_is_web_console(self, tmp_path: Path) -> None:
        """The SystemIO behind the app talks to a WebConsole."""
        _client, sysio = _app(tmp_path)
        assert isinstance(sysio.console, WebConsole)


class TestConsoleEndpoint:
    """Verify guest output reaches the browser."""

    def test_output_is_drained(self, tmp_path: Path) -> None:
        """Guest stdout shows up once, then the buffer is empty."""
        client, sysio = _app(tmp_path)
        sysio.write_to_file(StdChannel.STDOUT, b"done\n")
        response = client.get("/api/console")
        assert response.status_code == HTTP_OK
        assert response.get_json() == {"output": "done\n"}
        assert client.get("/api/console").get_json() == {"output": ""}


class TestInputEndpoint:
    """Verify browser input reaches the guest's stdin."""

    def test_input_before_read(self, tmp_path: Path) -> None:
        """A line posted ahead of time answers the next stdin read."""
        client, sysio = _app(tmp_path)
        response = client.post("/api/input", json={"text": "42"})
        assert response.status_code == HTTP_OK
        buffer = bytearray()
        assert sysio.read_from_file(StdChannel.STDIN, 16, buffer) == 3
        assert buffer == b"42\n"

    def test_input_unblocks_waiting_read(self, tmp_path: Path) -> None:
        """A guest blocked on stdin resumes when the browser posts."""
        client, sysio = _app(tmp_path)
        results: list[int] = []
        buffer = bytearray()
        worker = threading.Thread(
            target=lambda: results.append(sysio.read_from_file(StdChannel.STDIN, 16, buffer))
        )
        worker.start()
        client.post("/api/input", json={"text": "go"})
        worker.join(WAIT_SECONDS)
        assert results == [3]
        assert buffer == b"go\n"

    def test_missing_text(self, tmp_path: Path) -> None:
        """A body without text is a 400."""
        client, _sysio = _app(tmp_path)
        response = client.post("/api/input", json={"line": "x"})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "error" in response.get_json()


class TestStatusAndReset:
    """Verify the status and reset endpoints."""

    def test_status_lists_descriptors(self, tmp_path: Path) -> None:
        """Status shows the reserved channels plus open files."""
        client, sysio = _app(tmp_path)
        sysio.open_file("a.txt", OpenFlags.WRONLY | OpenFlags.CREAT)
        sysio.open_file("missing.txt", OpenFlags.RDONLY)
        data = client.get("/api/status").get_json()
        assert [d["name"] for d in data["descriptors"]] == ["STDIN", "STDOUT", "STDERR", "a.txt"]
        assert data["last_error_kind"] == "not_found"
        assert data["waiting_for_input"] is False

    def test_reset(self, tmp_path: Path) -> None:
        """Reset closes guest files and keeps stdin usable."""
        client, sysio = _app(tmp_path)
        sysio.open_file("a.txt", OpenFlags.WRONLY | OpenFlags.CREAT)
        assert client.post("/api/reset").get_json() == {"reset": True}
        assert list(sysio.table.list_descriptors()) == [0, 1, 2]
        client.post("/api/input", json={"text": "after"})
        buffer = bytearray()
        assert sysio.read_from_file(StdChannel.STDIN, 16, buffer) == 6

    def test_reset_releases_blocked_read(self, tmp_path: Path) -> None:
        """A stdin read parked in another thread gives up on reset."""
        client, sysio = _app(tmp_path)
        results: list[int] = []
        worker = threading.Thread(
            target=lambda: results.append(sysio.read_from_file(StdChannel.STDIN, 16, bytearray())),
            daemon=True,
        )
        worker.start()
        deadline = time.monotonic() + WAIT_SECONDS
        while not client.get("/api/status").get_json()["waiting_for_input"]:
            assert time.monotonic() < deadline
            time.sleep(0.01)
        assert client.post("/api/reset").get_json() == {"reset": True}
        worker.join(WAIT_SECONDS)
        assert not worker.is_alive()
        assert results == [FAILURE]
