"""Console I/O — the boundary between guest stdio and the simulator UI.

Re-exports public symbols so callers can write::

    from py_sysio.io import ConsoleBridge, ScriptedInput
"""

from py_sysio.io.console import (
    BufferedOutput,
    ConsoleBridge,
    InputCancelledError,
    InputSource,
    InteractiveInput,
    OutputSink,
    ScriptedInput,
    StreamOutput,
    TerminalInput,
)

__all__ = [
    "BufferedOutput",
    "ConsoleBridge",
    "InputCancelledError",
    "InputSource",
    "InteractiveInput",
    "OutputSink",
    "ScriptedInput",
    "StreamOutput",
    "TerminalInput",
]
