# bgrunner/controller.py

from __future__ import annotations

import logging

from PyQt6 import QtCore

from .ui import RunnerWindow
from .core.arguments import LaunchSpec
from .core.config import Config
from .core.output_router import OutputRouter
from .core.supervisor import ProcessSupervisor
from .core.visibility import CloseDecision, VisibilityController


class RunnerController(QtCore.QObject):
    """
    Wires the core to the window:
    - acts as the OutputRouter's display sink
    - forwards minimize/restore/close gestures to the VisibilityController
    """

    # Signals into UI (emitted from the output worker thread)
    line_ready = QtCore.pyqtSignal(str)
    title_ready = QtCore.pyqtSignal(str)

    def __init__(self, window: RunnerWindow, config: Config):
        super().__init__()
        self.window = window
        self.config = config
        self.logger = logging.getLogger("BGRunner.Controller")

        # ---- Core components ----
        self.router = OutputRouter(display=self)
        self.supervisor = ProcessSupervisor(
            self.router,
            log_dir=config.log_directory,
            kill_grace=config.kill_grace,
            encoding=config.encoding,
        )
        self.visibility = VisibilityController(self.supervisor)
        self.visibility.set_window_callbacks(
            self.window.hide_to_tray,
            self.window.show_from_tray,
        )

        # ---- Wire UI signals ----
        self.line_ready.connect(self.window.append_line)
        self.title_ready.connect(self.window.set_title)

        # UI -> controller inputs
        self.window.minimize_requested.connect(self.visibility.minimize)
        self.window.restore_requested.connect(self.visibility.restore)
        self.window.close_guard = self.handle_close

    # -------------------------------------------------------------------------
    # Display sink (output worker thread)
    # -------------------------------------------------------------------------

    def on_line(self, text: str):
        self.line_ready.emit(text)

    def on_title_changed(self, text: str):
        self.title_ready.emit(text)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def launch(self, spec: LaunchSpec) -> bool:
        return self.supervisor.start(spec)

    def handle_close(self) -> bool:
        """Close guard for the window; False means try again shortly."""
        if self.visibility.request_close() == CloseDecision.DEFERRED:
            self.logger.info("Close deferred until the child has been killed")
            return False

        self.logger.info("Closing BGRunner")
        self.router.detach_display()
        self.router.shutdown(timeout=self.supervisor.kill_grace)
        return True
