# bgrunner/core/arguments.py

"""
Command-line resolution for BGRunner.

Turns the launcher's own arguments into a LaunchSpec:
- executable + argument string handed to the child
- display name used for the window title and the log file name
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

LOG_FILE_PREFIX = "BGRunnerLog_"
INTERPRETERS = ("PYTHON", "PYTHON3")
UNBUFFERED_FLAG = "-u"


@dataclass(frozen=True)
class LaunchSpec:
    executable: str = ""
    argument_string: str = ""
    display_name: str = ""
    log_file_name: str = ""

    @property
    def is_empty(self) -> bool:
        return self.executable == ""

    def argv(self) -> List[str]:
        # Arguments were joined with single spaces, so whitespace is the only
        # boundary left to split on.
        return [self.executable] + self.argument_string.split()

    def command_line(self) -> str:
        if not self.argument_string:
            return self.executable
        return f"{self.executable} {self.argument_string}"


def log_timestamp(now: datetime) -> str:
    """Format as yyyyMMdd_HHmmssfff (milliseconds, three digits)."""
    return now.strftime("%Y%m%d_%H%M%S") + f"{now.microsecond // 1000:03d}"


def log_name_part(display_name: str) -> str:
    """Last path component of the display name, so the log lands in one directory."""
    base = display_name.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    return base or display_name


def resolve_launch(args: Sequence[str], now: Optional[datetime] = None) -> LaunchSpec:
    """
    Build the launch specification from the invocation arguments.

    Args:
        args: Invocation arguments without the program name
        now: Timestamp for the log file name (defaults to the current time)

    Returns:
        LaunchSpec; an empty one when no target was given
    """
    if not args:
        return LaunchSpec()

    executable = args[0]
    display_name = executable.strip()
    argument_string = ""

    if len(args) > 1:
        argument_string = " ".join(args[1:])
        if executable.upper() in INTERPRETERS:
            # The script, not the interpreter, names the run
            display_name = args[1].strip()
            argument_string = f"{UNBUFFERED_FLAG} {argument_string}"

    if now is None:
        now = datetime.now()

    return LaunchSpec(
        executable=executable,
        argument_string=argument_string,
        display_name=display_name,
        log_file_name=f"{LOG_FILE_PREFIX}{log_name_part(display_name)}_{log_timestamp(now)}.txt",
    )
