# bgrunner/ui.py

from __future__ import annotations

import logging

from PyQt6.QtCore import QEvent, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import (
    QApplication,
    QMainWindow,
    QMenu,
    QStyle,
    QSystemTrayIcon,
)

from .widgets.output_view import OutputView


class RunnerWindow(QMainWindow):
    """
    BGRunner main window.

    - Center: output view with the child's stdout/stderr and banners
    - Tray icon: shown while the window is minimized; click or "Show" restores,
      "Exit" closes (killing the child first)
    """

    # Window chrome -> controller
    minimize_requested = pyqtSignal()
    restore_requested = pyqtSignal()

    def __init__(self, max_lines: int = 0, minimize_to_tray: bool = True):
        super().__init__()
        self.logger = logging.getLogger("BGRunner.UI")
        self.minimize_to_tray = minimize_to_tray and QSystemTrayIcon.isSystemTrayAvailable()

        # Set by the controller: returns True when the close may go ahead
        self.close_guard = None

        self.setWindowTitle("BGRunner")
        self.resize(900, 500)

        icon = self.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon)
        self.setWindowIcon(icon)

        self.output = OutputView(self, max_lines=max_lines)
        self.setCentralWidget(self.output)

        self._build_tray(icon)

    def _build_tray(self, icon):
        self.tray = QSystemTrayIcon(icon, self)
        self.tray.setToolTip("BGRunner")

        menu = QMenu(self)
        self.act_show = menu.addAction("Show")
        self.act_show.triggered.connect(self.restore_requested.emit)
        menu.addSeparator()
        self.act_exit = menu.addAction("Exit")
        self.act_exit.triggered.connect(self.close)
        self.tray.setContextMenu(menu)
        self.tray.activated.connect(self._on_tray_activated)

    # -------------------------------------------------------------------------
    # Slots for the controller
    # -------------------------------------------------------------------------

    def append_line(self, text: str):
        self.output.append_line(text)

    def set_title(self, text: str):
        self.setWindowTitle(text)
        self.tray.setToolTip(text)

    def hide_to_tray(self):
        """Park the window: tray icon on, window and taskbar entry off."""
        self.tray.show()
        # Hiding inside the state-change event confuses some window managers
        QTimer.singleShot(0, self.hide)

    def show_from_tray(self):
        self.tray.hide()
        self.showNormal()
        self.raise_()
        self.activateWindow()

    # -------------------------------------------------------------------------
    # Qt events
    # -------------------------------------------------------------------------

    def _on_tray_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.restore_requested.emit()

    def changeEvent(self, event: QEvent):
        if event.type() == QEvent.Type.WindowStateChange and self.minimize_to_tray:
            if self.windowState() & Qt.WindowState.WindowMinimized:
                self.minimize_requested.emit()
        super().changeEvent(event)

    def closeEvent(self, event: QCloseEvent):
        if self.close_guard is not None and not self.close_guard():
            event.ignore()
            # Let queued output (exit banner) land, then close for real
            QTimer.singleShot(0, self.close)
            return

        self.tray.hide()
        super().closeEvent(event)
        QApplication.quit()
