# bgrunner/core/supervisor.py

"""
Child process supervisor for BGRunner.

- Spawns the target with hidden window and piped stdout/stderr
- One reader thread per stream feeds the OutputRouter
- An exit watcher reports the exit code exactly once and closes the log
- request_kill() is a hard kill; there is no graceful stop
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from enum import Enum, auto
from pathlib import Path
from typing import IO, List, Optional

from .arguments import INTERPRETERS, LaunchSpec
from .log_sink import LogSink
from .output_router import OutputLine, OutputRouter, StreamSource

APP_NAME = "BGRunner"
DEFAULT_KILL_GRACE = 0.1  # seconds
READER_DRAIN_TIMEOUT = 2.0  # seconds

BANNER_STARTING = "---------- BGRunner: Starting process ----------"
BANNER_FAILED = "---------- BGRunner: Failed to start process ----------"
BANNER_EXITED = "---------- BGRunner: Process exited with code {0} ----------"
BANNER_LOG_FAILED = "---------- BGRunner: Failed to create log file ----------"
BANNER_LOG_DISABLED = "---------- BGRunner: Log disabled ----------"

USAGE_LINES = [
    "No command line specified.",
    "~Major Tom to Ground Control: No runway in sight!~",
    "",
    "Usage:",
    "    BGRunner <command_line>",
    "",
    "    Start any process with window hidden.",
    "    Minimize this window to run in background.",
    "    Use the tray icon to bring back.",
]


class SupervisorState(Enum):
    IDLE = auto()
    STARTING = auto()
    RUNNING = auto()
    EXITED = auto()
    FAILED_TO_START = auto()


def window_title(spec: LaunchSpec) -> str:
    if spec.is_empty:
        return APP_NAME
    return f"{APP_NAME} ({spec.display_name})"


class ProcessSupervisor:
    """Owns the single child process of a BGRunner invocation."""

    def __init__(
        self,
        router: OutputRouter,
        log_dir: Optional[str] = ".",
        kill_grace: float = DEFAULT_KILL_GRACE,
        encoding: str = "utf-8",
        drain_timeout: float = READER_DRAIN_TIMEOUT,
    ):
        """
        Args:
            router: Destination for every output and banner line
            log_dir: Directory for the per-run log file, None disables logging
            kill_grace: Seconds to wait for exit after a kill
            encoding: Encoding used to decode the child's output
            drain_timeout: Seconds to wait, in total, for both streams after exit
        """
        self.logger = logging.getLogger("BGRunner.Supervisor")
        self.router = router
        self.log_dir = log_dir
        self.kill_grace = kill_grace
        self.encoding = encoding
        self.drain_timeout = drain_timeout

        self.spec: Optional[LaunchSpec] = None
        self._state = SupervisorState.IDLE
        self._started = False
        self._process: Optional[subprocess.Popen] = None
        self._exit_code: Optional[int] = None
        self._readers: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._exited = threading.Event()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SupervisorState.RUNNING

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start(self, spec: LaunchSpec) -> bool:
        """
        Launch the child described by `spec`.

        An empty spec only prints the usage text. A supervisor runs at most
        one child; later calls are refused.

        Returns:
            True if the child is running, False otherwise
        """
        with self._lock:
            if self._started:
                self.logger.warning("Launch refused: this runner already handled a launch")
                return False
            self._started = True
            self.spec = spec

        self.router.set_title(window_title(spec))

        if spec.is_empty:
            self.logger.info("No target given, showing usage")
            for line in USAGE_LINES:
                self.router.emit(line)
            return False

        self._state = SupervisorState.STARTING
        self._open_log(spec)

        self.router.emit(spec.command_line())
        self.router.emit()
        self.router.emit(BANNER_STARTING)
        self.router.emit()

        self.logger.info(f"Starting process: {spec.command_line()}")
        try:
            process = subprocess.Popen(spec.argv(), **self._popen_kwargs(spec))
        except (OSError, ValueError, LookupError) as e:
            self.logger.error(f"Failed to start process {spec.executable}: {e}")
            with self._lock:
                self._state = SupervisorState.FAILED_TO_START
            self.router.emit(BANNER_FAILED)
            self.router.emit(str(e))
            self.router.close_log()
            return False

        with self._lock:
            self._process = process
            self._state = SupervisorState.RUNNING
        self.logger.info(f"Process started, pid={process.pid}")

        self._readers = [
            self._start_thread(self._read_stream, "stdout", process.stdout, StreamSource.STDOUT),
            self._start_thread(self._read_stream, "stderr", process.stderr, StreamSource.STDERR),
        ]
        self._start_thread(self._watch_exit, "exit", process)
        return True

    def _open_log(self, spec: LaunchSpec):
        if self.log_dir is None:
            self.logger.info("Run log disabled by configuration")
            return

        sink = LogSink()
        if sink.open(str(Path(self.log_dir) / spec.log_file_name)):
            self.router.attach_log(sink)
            return

        self.router.emit_display_only(BANNER_LOG_FAILED)
        self.router.emit_display_only(sink.error or "")
        self.router.emit_display_only()
        self.router.emit_display_only(BANNER_LOG_DISABLED)
        self.router.emit_display_only()

    def _popen_kwargs(self, spec: LaunchSpec) -> dict:
        kwargs = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.PIPE,
            "stderr": subprocess.PIPE,
            "text": True,
            "encoding": self.encoding,
            "errors": "replace",
            "bufsize": 1,
        }

        if spec.executable.upper() in INTERPRETERS:
            env = os.environ.copy()
            env["PYTHONIOENCODING"] = "utf-8"
            kwargs["env"] = env

        if os.name == "nt":
            startupinfo = subprocess.STARTUPINFO()
            startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
            startupinfo.wShowWindow = subprocess.SW_HIDE
            kwargs["startupinfo"] = startupinfo
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        else:
            kwargs["start_new_session"] = True

        return kwargs

    def _start_thread(self, target, name: str, *args) -> threading.Thread:
        thread = threading.Thread(
            target=target, args=args, name=f"bgrunner-{name}", daemon=True
        )
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Background threads
    # ------------------------------------------------------------------

    def _read_stream(self, stream: IO[str], source: StreamSource):
        """Forward one stream line by line until EOF."""
        with stream:
            for line in iter(stream.readline, ""):
                self.router.deliver(OutputLine(line.rstrip("\r\n"), source))
        self.logger.debug(f"{source.value} reached EOF")

    def _watch_exit(self, process: subprocess.Popen):
        """Report the exit once both streams are drained."""
        code = process.wait()
        # Grandchildren may keep a pipe open; one shared deadline for both streams
        deadline = time.monotonic() + self.drain_timeout
        for reader in self._readers:
            reader.join(max(0.0, deadline - time.monotonic()))

        with self._lock:
            if self._state != SupervisorState.RUNNING:
                return
            self._exit_code = code
            self._state = SupervisorState.EXITED

        self.logger.info(f"Process exited with code {code}")
        self.router.emit()
        self.router.emit(BANNER_EXITED.format(code))
        self.router.emit()
        self.router.close_log()
        self._exited.set()

    # ------------------------------------------------------------------
    # Kill
    # ------------------------------------------------------------------

    def request_kill(self) -> bool:
        """
        Hard-kill the child if it is running.

        Returns:
            True if a kill was sent, False if there was nothing to kill
        """
        with self._lock:
            if self._state != SupervisorState.RUNNING or self._process is None:
                return False
            process = self._process

        self.logger.info(f"Killing process pid={process.pid}")
        try:
            process.kill()
        except ProcessLookupError:
            self.logger.info("Process already gone when kill was sent")
            return False
        return True

    def wait_for_exit(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the exit notification.

        Args:
            timeout: Seconds to wait, defaults to the kill grace period

        Returns:
            True if the exit was reported within the timeout
        """
        if timeout is None:
            timeout = self.kill_grace
        return self._exited.wait(timeout)
