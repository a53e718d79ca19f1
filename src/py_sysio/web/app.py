"""Flask application factory for the browser console.

``create_app`` builds a ``SystemIO`` whose console boundary is a
``WebConsole``: guest writes to stdout/stderr are buffered until the
browser polls for them, and guest reads from stdin block until the
browser posts a line.  The simulator itself runs elsewhere (usually a
worker thread) and calls the ``SystemIO`` handlers directly.

Endpoints:

- ``GET /api/console`` — drain buffered guest output.
- ``POST /api/input`` — supply a line to the pending stdin read.
- ``GET /api/status`` — open descriptors, last error, waiting flag.
- ``POST /api/reset`` — reset the descriptor table (simulator stopped first).
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from py_sysio.config import SysioConfig
from py_sysio.io.console import BufferedOutput, ConsoleBridge, InteractiveInput
from py_sysio.sysio import SystemIO

_HTTP_BAD_REQUEST = 400

EXTENSION_KEY = "py_sysio"


class WebConsole(ConsoleBridge):
    """Console bridge backed by HTTP: queued input, buffered output."""

    def __init__(self, *, input_timeout: float | None = None) -> None:
        """Create a console; *input_timeout* bounds each stdin wait."""
        self.input = InteractiveInput(timeout=input_timeout)
        self.output = BufferedOutput()
        super().__init__(source=self.input, sink=self.output)


def create_app(
    config: SysioConfig | None = None,
    *,
    input_timeout: float | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Settings for the ``SystemIO`` behind the app.
        input_timeout: Seconds a stdin read waits for the browser.

    Returns:
        A configured Flask application.  The ``SystemIO`` instance is
        available as ``app.extensions["py_sysio"]``.

    """
    console = WebConsole(input_timeout=input_timeout)
    sysio = SystemIO(config=config, console=console)

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = sysio

    @app.route("/api/console")
    def console_output() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return and clear everything the guest printed since last poll."""
        return jsonify({"output": console.output.drain()})

    @app.route("/api/input", methods=["POST"])
    def supply_input() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Hand a line of text to the guest's stdin.

        Expects JSON body: ``{"text": "..."}``
        """
        data = request.get_json(silent=True)
        if data is None or not isinstance(data.get("text"), str):
            return jsonify({"error": "Missing 'text' field"}), _HTTP_BAD_REQUEST
        console.input.supply(data["text"])
        return jsonify({"accepted": True})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the open descriptors and the last error."""
        descriptors = [
            {"fd": fd, "name": entry.name, "flags": int(entry.flags), "position": entry.position}
            for fd, entry in sysio.table.list_descriptors().items()
        ]
        kind = sysio.last_error_kind
        return jsonify(
            {
                "descriptors": descriptors,
                "last_error": sysio.last_error,
                "last_error_kind": None if kind is None else str(kind),
                "waiting_for_input": console.input.waiting,
            }
        )

    @app.route("/api/reset", methods=["POST"])
    def reset() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Close every guest file and cancel any pending stdin read.

        The descriptor table belongs to the simulator thread.  Stop the
        simulator (or let the cancelled read return) before resetting;
        this endpoint only makes a blocked stdin read give up.
        """
        console.cancel()
        sysio.reset()
        console.input.resume()
        return jsonify({"reset": True})

    return app


def main() -> None:
    """Run the web console development server.

    This is the ``py-sysio-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
