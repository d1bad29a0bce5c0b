# bgrunner/app.py

from __future__ import annotations

import sys
from PyQt6 import QtWidgets

from .ui import RunnerWindow
from .controller import RunnerController
from .core.arguments import resolve_launch
from .core.config import Config
from .core.logger import setup_logging


def main():
    config = Config()
    logger = setup_logging(config.diagnostics_directory)

    # Everything after argv[0] belongs to the child; keep it away from Qt
    spec = resolve_launch(sys.argv[1:])
    app = QtWidgets.QApplication(sys.argv[:1])
    # Hiding to the tray must not end the application; closeEvent quits
    app.setQuitOnLastWindowClosed(False)

    window = RunnerWindow(
        max_lines=config.max_display_lines,
        minimize_to_tray=config.minimize_to_tray,
    )
    controller = RunnerController(window, config)

    # Make sure controller isn't garbage-collected
    window.controller = controller  # type: ignore

    window.show()
    controller.launch(spec)
    logger.info(f"Launcher ready: {spec.command_line() or 'usage only'}")

    sys.exit(app.exec())
