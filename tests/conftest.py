import os
import sys
import textwrap
import threading
import time

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bgrunner.core.arguments import LaunchSpec
from bgrunner.core.output_router import OutputRouter


class RecordingDisplay:
    """Display sink that remembers what it was given."""

    def __init__(self):
        self.lines = []
        self.titles = []
        self.threads = set()
        self._lock = threading.Lock()

    def on_line(self, text):
        with self._lock:
            self.lines.append(text)
            self.threads.add(threading.get_ident())

    def on_title_changed(self, text):
        self.titles.append(text)

    def wait_for(self, text, timeout=10.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if text in self.lines:
                    return True
            time.sleep(0.01)
        return False


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def router(display):
    r = OutputRouter(display=display)
    yield r
    r.shutdown()


@pytest.fixture
def python_script(tmp_path):
    """Write a script to tmp_path and return a LaunchSpec that runs it."""

    def make(source, name="child.py"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return LaunchSpec(
            executable=sys.executable,
            argument_string=str(path),
            display_name=name,
            log_file_name=f"BGRunnerLog_{name}_test.txt",
        )

    return make
