"""Console bridge — where the reserved descriptors actually go.

Reads from descriptor 0 and writes to descriptors 1 and 2 never touch
the host filesystem.  They cross the **console boundary** instead: the
simulator's UI, a terminal, or a scripted stand-in for headless runs.

This module provides:

**InputSource** (Protocol) — something that can answer a prompt.
    - ``ScriptedInput``: pops pre-queued lines, never blocks.
    - ``InteractiveInput``: blocks until another thread calls
      ``supply()``; ``cancel()`` wakes it up with an error.
    - ``TerminalInput``: reads one line from a text stream.

**OutputSink** (Protocol) — something that accepts text.
    - ``BufferedOutput``: collects text for later inspection.
    - ``StreamOutput``: writes to a text stream and flushes.

**ConsoleBridge** — pairs one source with one sink and applies the
    ``gets()``-style shaping every input line gets: truncate, then
    terminate with a newline.
"""

from __future__ import annotations

import queue
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Protocol, TextIO


class InputCancelledError(Exception):
    """Raise when an input request is cancelled or runs dry."""


class InputSource(Protocol):
    """Interface every input source must satisfy."""

    def request(self, title: str, initial: str, prompt: str) -> str:
        """Return one line of text for the given prompt."""
        ...  # pragma: no cover

    def cancel(self) -> None:
        """Abandon any pending request."""
        ...  # pragma: no cover


class OutputSink(Protocol):
    """Interface every output sink must satisfy."""

    def write(self, text: str) -> None:
        """Accept a chunk of output text."""
        ...  # pragma: no cover


class ScriptedInput:
    """Pre-scripted input for headless and test runs.

    Each request pops the next queued line.  When the script runs out
    the request fails immediately instead of blocking the simulator.
    """

    def __init__(self, lines: list[str] | None = None) -> None:
        """Create a source that will answer with *lines* in order."""
        self._lines: deque[str] = deque(lines or [])
        self._prompts: list[str] = []

    def push(self, line: str) -> None:
        """Queue another line."""
        self._lines.append(line)

    @property
    def prompts(self) -> list[str]:
        """Return every prompt this source has been asked, in order."""
        return list(self._prompts)

    @property
    def pending(self) -> int:
        """Return the number of queued lines."""
        return len(self._lines)

    def request(self, title: str, initial: str, prompt: str) -> str:  # noqa: ARG002
        """Return the next scripted line.

        Raises:
            InputCancelledError: If no lines remain.

        """
        self._prompts.append(prompt)
        if not self._lines:
            msg = "Input script exhausted"
            raise InputCancelledError(msg)
        return self._lines.popleft()

    def cancel(self) -> None:
        """Drop every remaining line."""
        self._lines.clear()


@dataclass(frozen=True)
class _Cancel:
    """Queue marker that wakes requests started before a cancel."""

    generation: int


class InteractiveInput:
    """Blocking input fed by another thread (a UI or a web handler).

    ``request()`` suspends the caller until ``supply()`` delivers a line,
    ``cancel()`` is called, or the optional timeout expires.  Lines
    supplied ahead of time are queued and answered in order.

    Each ``cancel()`` starts a new generation.  Its marker only wakes
    requests from the generation it ended, so a quick ``resume()`` can
    neither eat the wake-up nor let a stale marker hit a later request.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        """Create a source; *timeout* is in seconds (None waits forever)."""
        self._timeout = timeout
        self._queue: queue.Queue[str | _Cancel] = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0
        self._cancelled = threading.Event()
        self._waiting = threading.Event()
        self.last_prompt: tuple[str, str, str] | None = None

    @property
    def waiting(self) -> bool:
        """Return True while a request is blocked waiting for a line."""
        return self._waiting.is_set()

    def supply(self, line: str) -> None:
        """Deliver a line to the pending (or next) request."""
        self._queue.put(line)

    def request(self, title: str, initial: str, prompt: str) -> str:
        """Block until a line is supplied.

        Raises:
            InputCancelledError: If cancelled or the timeout expires.

        """
        with self._lock:
            if self._cancelled.is_set():
                msg = "Input request cancelled"
                raise InputCancelledError(msg)
            generation = self._generation
        self.last_prompt = (title, initial, prompt)
        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        self._waiting.set()
        try:
            while True:
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
                try:
                    item = self._queue.get(timeout=remaining)
                except queue.Empty as e:
                    msg = f"No input within {self._timeout} seconds"
                    raise InputCancelledError(msg) from e
                if isinstance(item, str):
                    return item
                if item.generation >= generation:
                    msg = "Input request cancelled"
                    raise InputCancelledError(msg)
        finally:
            self._waiting.clear()

    def cancel(self) -> None:
        """Wake any pending request and refuse new ones until ``resume()``."""
        with self._lock:
            self._cancelled.set()
            self._queue.put(_Cancel(self._generation))
            self._generation += 1

    def resume(self) -> None:
        """Accept requests again after a cancel, discarding queued lines.

        Cancel markers stay queued for the requests they belong to.
        """
        with self._lock:
            self._cancelled.clear()
            kept: list[_Cancel] = []
            while True:
                try:
                    item = self._queue.get_nowait()
                except queue.Empty:
                    break
                if isinstance(item, _Cancel):
                    kept.append(item)
            for item in kept:
                self._queue.put(item)


class TerminalInput:
    """Read a line from a text stream, ``stdin`` by default.

    A blocking ``readline()`` cannot be interrupted from here, so
    ``cancel()`` only affects later requests.
    """

    def __init__(self, stream: TextIO | None = None, echo: TextIO | None = None) -> None:
        """Create a source reading *stream* and printing prompts to *echo*."""
        self._stream = stream if stream is not None else sys.stdin
        self._echo = echo
        self._cancelled = False

    def request(self, title: str, initial: str, prompt: str) -> str:  # noqa: ARG002
        """Print the prompt and read one line (without its newline).

        Raises:
            InputCancelledError: If cancelled or the stream is at EOF.

        """
        if self._cancelled:
            msg = "Input request cancelled"
            raise InputCancelledError(msg)
        if self._echo is not None:
            self._echo.write(f"{prompt}: ")
            self._echo.flush()
        line = self._stream.readline()
        if not line:
            msg = "End of input stream"
            raise InputCancelledError(msg)
        return line.rstrip("\r\n")

    def cancel(self) -> None:
        """Refuse further requests."""
        self._cancelled = True


class BufferedOutput:
    """Collect console output in memory."""

    def __init__(self) -> None:
        """Create an empty buffer."""
        self._chunks: list[str] = []

    def write(self, text: str) -> None:
        """Append *text* to the buffer."""
        self._chunks.append(text)

    @property
    def text(self) -> str:
        """Return everything written so far."""
        return "".join(self._chunks)

    def drain(self) -> str:
        """Return everything written so far and empty the buffer."""
        text = self.text
        self._chunks.clear()
        return text


class StreamOutput:
    """Write console output straight to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Create a sink for *stream* (``stdout`` by default)."""
        self._stream = stream if stream is not None else sys.stdout

    def write(self, text: str) -> None:
        """Write and flush."""
        self._stream.write(text)
        self._stream.flush()


class ConsoleBridge:
    """The console boundary as seen by the file syscalls."""

    def __init__(
        self,
        source: InputSource | None = None,
        sink: OutputSink | None = None,
    ) -> None:
        """Pair an input source with an output sink.

        Defaults to an empty ``ScriptedInput`` and a ``BufferedOutput``
        so an unconfigured bridge never blocks and never prints.
        """
        self.source: InputSource = source if source is not None else ScriptedInput()
        self.sink: OutputSink = sink if sink is not None else BufferedOutput()

    def request_input(self, title: str, initial: str, prompt: str, max_length: int) -> str:
        """Ask the source for a line, shaped like ``gets()`` expects.

        The line is truncated to ``max_length - 1`` characters and a
        newline is appended.

        Raises:
            InputCancelledError: If the source gives up.

        """
        line = self.source.request(title, initial, prompt)
        return line[: max(max_length - 1, 0)] + "\n"

    def emit(self, text: str) -> None:
        """Forward *text* to the sink."""
        self.sink.write(text)

    def cancel(self) -> None:
        """Cancel a pending input request (simulator stop)."""
        self.source.cancel()
