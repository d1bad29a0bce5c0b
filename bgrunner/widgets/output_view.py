"""
Output view widget.
Read-only console that shows the child's output and follows the last line.
"""

from PyQt6.QtWidgets import QPlainTextEdit
from PyQt6.QtGui import QFont, QFontDatabase


class OutputView(QPlainTextEdit):
    """Console-style, auto-scrolling view of the child's output."""

    def __init__(self, parent=None, max_lines: int = 0):
        """
        Initialize output view widget.

        Args:
            parent: Parent widget
            max_lines: Keep only this many lines (0 keeps everything)
        """
        super().__init__(parent)
        self.setup_ui(max_lines)

    def setup_ui(self, max_lines: int):
        """Set up the output view UI."""
        self.setReadOnly(True)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.setUndoRedoEnabled(False)
        self.setMaximumBlockCount(max_lines)

        font = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.setFont(font)

    def append_line(self, text: str):
        """
        Append one line and scroll to it.

        Args:
            text: Line text without terminator
        """
        self.appendPlainText(text)
        self.verticalScrollBar().setValue(self.verticalScrollBar().maximum())
