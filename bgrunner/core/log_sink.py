"""
Per-run log file.
Every line that reaches the display is also appended here and flushed at once.
"""

import logging
from typing import Optional, TextIO


class LogSink:
    """Append-only text log for a single run. Degrades to a no-op on failure."""

    def __init__(self):
        """Initialize a closed sink."""
        self.logger = logging.getLogger("BGRunner.LogSink")
        self.path: Optional[str] = None
        self.error: Optional[str] = None
        self._file: Optional[TextIO] = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self, path: str) -> bool:
        """
        Create (or truncate) the log file.

        Args:
            path: Log file path

        Returns:
            True if the file is open for writing, False if logging is disabled
        """
        self.path = path
        try:
            self._file = open(path, "w", encoding="utf-8")
        except OSError as e:
            self.error = str(e)
            self.logger.warning(f"Log file disabled, cannot open {path}: {e}")
            return False

        self.logger.info(f"Logging run output to {path}")
        return True

    def write(self, line: str):
        """Append one line and flush it to disk."""
        if self._file is None:
            return
        self._file.write(line + "\n")
        self._file.flush()

    def close(self):
        """Flush and release the file. Safe to call more than once."""
        if self._file is None:
            return
        f, self._file = self._file, None
        try:
            f.flush()
        finally:
            f.close()
        self.logger.info(f"Closed log file {self.path}")
