# bgrunner/core/output_router.py

"""
Output routing for BGRunner.

All output (child stdout/stderr, banner lines, title changes) arrives here from
several threads and is written to the display and the log file by a single
worker thread, one item at a time, in the order it was queued.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .log_sink import LogSink


class StreamSource(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"
    LAUNCHER = "launcher"


@dataclass(frozen=True)
class OutputLine:
    text: str
    source: StreamSource = StreamSource.LAUNCHER


class DisplaySink(Protocol):
    def on_line(self, text: str) -> None: ...

    def on_title_changed(self, text: str) -> None: ...


# Queue item kinds
_LINE = "line"
_DISPLAY_ONLY = "display_only"
_TITLE = "title"
_ATTACH_LOG = "attach_log"
_CLOSE_LOG = "close_log"
_STOP = "stop"


class OutputRouter:
    """Single consumer for everything that ends up on screen or in the log."""

    def __init__(self, display: Optional[DisplaySink] = None):
        self.logger = logging.getLogger("BGRunner.OutputRouter")
        self._display = display
        self._display_alive = display is not None
        self._log: Optional[LogSink] = None

        self._queue: "queue.Queue[tuple]" = queue.Queue()
        self._accepting = True
        self._lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run, name="bgrunner-output", daemon=True
        )
        self._worker.start()

    # ------------------------------------------------------------------
    # Producers (any thread)
    # ------------------------------------------------------------------

    def deliver(self, line: OutputLine):
        """Queue one line for the display and the log."""
        self._put((_LINE, line))

    def emit(self, text: str = ""):
        """Queue a banner line produced by the launcher itself."""
        self.deliver(OutputLine(text, StreamSource.LAUNCHER))

    def emit_display_only(self, text: str = ""):
        """Queue a launcher line that must not reach the log file."""
        self._put((_DISPLAY_ONLY, OutputLine(text, StreamSource.LAUNCHER)))

    def set_title(self, text: str):
        self._put((_TITLE, text))

    def attach_log(self, sink: LogSink):
        """Start writing to `sink` from the next queued line on."""
        self._put((_ATTACH_LOG, sink))

    def close_log(self):
        """Close the log once every line queued before this call is written."""
        self._put((_CLOSE_LOG, None))

    def _put(self, item: tuple):
        with self._lock:
            if not self._accepting:
                # Nothing left to write to
                return
            self._queue.put(item)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def detach_display(self):
        """The display is gone; keep logging but stop calling it."""
        self._display_alive = False

    def join(self):
        """Block until every queued item has been processed."""
        self._queue.join()

    def shutdown(self, timeout: float = 2.0):
        """Stop accepting output, drain the queue and close the log."""
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            self._queue.put((_STOP, None))

        self._worker.join(timeout)
        if self._worker.is_alive():
            self.logger.warning("Output worker did not stop within %.1fs", timeout)

    # ------------------------------------------------------------------
    # Consumer (worker thread only)
    # ------------------------------------------------------------------

    def _run(self):
        while True:
            kind, payload = self._queue.get()
            try:
                if kind == _STOP:
                    self._close_log()
                    return
                self._handle(kind, payload)
            except Exception as e:
                # The single consumer must outlive a faulty sink
                self.logger.error(f"Error routing {kind} item: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def _handle(self, kind: str, payload):
        if kind == _LINE:
            self._to_display(payload.text)
            self._to_log(payload.text)
        elif kind == _DISPLAY_ONLY:
            self._to_display(payload.text)
        elif kind == _TITLE:
            if self._display_alive:
                self._display.on_title_changed(payload)
        elif kind == _ATTACH_LOG:
            self._log = payload
        elif kind == _CLOSE_LOG:
            self._close_log()

    def _to_display(self, text: str):
        if self._display_alive:
            self._display.on_line(text)

    def _to_log(self, text: str):
        if self._log is None:
            return
        try:
            self._log.write(text)
        except OSError as e:
            self.logger.error(f"Writing to log file failed, logging disabled: {e}")
            self._close_log()

    def _close_log(self):
        if self._log is None:
            return
        log, self._log = self._log, None
        try:
            log.close()
        except OSError as e:
            self.logger.error(f"Error closing log file: {e}")
