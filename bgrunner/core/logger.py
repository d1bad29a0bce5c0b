# bgrunner/core/logger.py

"""
Logging helper for BGRunner.

- Logs the launcher's own diagnostics to file and console
- The child's output never goes through here; see LogSink
"""

import logging
from pathlib import Path


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    if log_dir is None:
        log_dir = Path.home() / ".bgrunner" / "logs"

    logger = logging.getLogger("BGRunner")
    logger.setLevel(level)

    # Avoid duplicate handlers if called twice
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler; the launcher still runs if the directory is unusable
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "bgrunner.log", encoding="utf-8")
    except OSError as e:
        fh = None
        file_error = e
    else:
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)
    logger.addHandler(ch)

    if fh is None:
        logger.warning(f"Diagnostic log file disabled: {file_error}")
    logger.info("BGRunner logging initialized.")
    return logger
