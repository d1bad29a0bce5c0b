"""
Configuration management for BGRunner.
Loads settings from a JSON file and provides access to configuration values.
"""

import codecs
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

CONFIG_ENV = "BGRUNNER_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".bgrunner.json"

DEFAULTS: Dict[str, Any] = {
    "log": {
        "enabled": True,
        "directory": ".",
    },
    "process": {
        "kill_grace_ms": 100,
        "encoding": "utf-8",
    },
    "display": {
        "max_lines": 0,
    },
    "window": {
        "minimize_to_tray": True,
    },
    "diagnostics": {
        "directory": "~/.bgrunner/logs",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class Config:
    """
    Configuration manager for BGRunner.
    Settings from the JSON file are layered over built-in defaults.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to the JSON file; falls back to $BGRUNNER_CONFIG,
                then ~/.bgrunner.json
        """
        self.logger = logging.getLogger("BGRunner.Config")
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV) or str(DEFAULT_CONFIG_PATH)
        self.config_path = config_path
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self.load()

    def load(self) -> bool:
        """
        Load configuration from the JSON file.
        A missing or broken file leaves the defaults in place.

        Returns:
            True if the file was loaded, False otherwise
        """
        if not os.path.exists(self.config_path):
            self.logger.debug(f"No config file at {self.config_path}, using defaults")
            return False

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error loading configuration {self.config_path}: {e}")
            return False

        if not isinstance(data, dict):
            self.logger.error(f"Configuration {self.config_path} is not a JSON object, ignored")
            return False

        _merge(self.config, data)
        self.logger.info(f"Configuration loaded from {self.config_path}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation (e.g., "process.encoding").

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    # Convenience properties
    @property
    def log_directory(self) -> Optional[str]:
        """Directory for per-run log files, None when logging is off."""
        if not self.get("log.enabled", True):
            return None
        return os.path.expanduser(self.get("log.directory", "."))

    @property
    def kill_grace(self) -> float:
        """Grace period after a kill, in seconds."""
        return float(self.get("process.kill_grace_ms", 100)) / 1000.0

    @property
    def encoding(self) -> str:
        """Codec for the child's output; unknown names fall back to utf-8."""
        name = self.get("process.encoding", "utf-8")
        try:
            codecs.lookup(name)
        except (LookupError, TypeError):
            self.logger.warning(f"Unknown process.encoding {name!r}, using utf-8")
            return "utf-8"
        return name

    @property
    def max_display_lines(self) -> int:
        return int(self.get("display.max_lines", 0))

    @property
    def minimize_to_tray(self) -> bool:
        return bool(self.get("window.minimize_to_tray", True))

    @property
    def diagnostics_directory(self) -> Path:
        return Path(os.path.expanduser(self.get("diagnostics.directory", "~/.bgrunner/logs")))
