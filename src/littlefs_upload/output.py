"""
Output sinks for pipeline progress.

A sink receives plain text from the orchestrator and the output of the
external tools. Writes may come from the two pipe reader threads of a running
process at once, so every sink serializes them.
"""

import sys
import threading
from typing import List, Optional, TextIO

CLEAR_SCREEN = "\x1b[2J\x1b[3J\x1b[;H"


class OutputSink:
    """Base sink with a one-shot readiness signal.

    The orchestrator waits for `ready` before emitting anything, so a sink
    backed by a surface that opens asynchronously can call `open()` later.
    """

    def __init__(self) -> None:
        self.ready = threading.Event()
        self._lock = threading.Lock()

    def open(self) -> None:
        self.ready.set()

    def close(self) -> None:
        self.ready.clear()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the sink is open. Returns False on timeout."""
        return self.ready.wait(timeout)

    def write(self, text: str) -> None:
        with self._lock:
            self._emit(text)

    def clear(self) -> None:
        self.write(CLEAR_SCREEN)

    def _emit(self, text: str) -> None:
        raise NotImplementedError()


class TerminalSink(OutputSink):
    """Writes to a text stream, stdout by default."""

    def __init__(self, stream: Optional[TextIO] = None, clear_screen: bool = True):
        """Initialize terminal sink.

        Args:
            stream: Target stream (default: sys.stdout)
            clear_screen: Whether clear() emits the terminal reset sequence
        """
        super().__init__()
        self.stream = stream or sys.stdout
        self.clear_screen = clear_screen
        self.open()

    def clear(self) -> None:
        if self.clear_screen:
            super().clear()

    def _emit(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()


class BufferSink(OutputSink):
    """Collects output in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.chunks: List[str] = []
        self.open()

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def _emit(self, text: str) -> None:
        self.chunks.append(text)
