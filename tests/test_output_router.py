"""Test the single-consumer output router."""

import threading
import time

from bgrunner.core.log_sink import LogSink
from bgrunner.core.output_router import OutputLine, OutputRouter, StreamSource


class FailingSink:
    def __init__(self):
        self.writes = 0
        self.closed = 0

    def write(self, line):
        self.writes += 1
        raise OSError("disk full")

    def close(self):
        self.closed += 1


def test_lines_reach_display_in_order(router, display):
    for i in range(50):
        router.deliver(OutputLine(f"line {i}", StreamSource.STDOUT))
    router.join()
    assert display.lines == [f"line {i}" for i in range(50)]


def test_banners_and_titles(router, display):
    router.set_title("BGRunner (job)")
    router.emit("banner")
    router.emit()
    router.join()
    assert display.titles == ["BGRunner (job)"]
    assert display.lines == ["banner", ""]


def test_display_is_only_called_from_one_thread(router, display):
    def produce(source):
        for i in range(200):
            router.deliver(OutputLine(f"{source.value} {i}", source))

    producers = [
        threading.Thread(target=produce, args=(StreamSource.STDOUT,)),
        threading.Thread(target=produce, args=(StreamSource.STDERR,)),
    ]
    for t in producers:
        t.start()
    for t in producers:
        t.join()
    router.join()

    assert len(display.lines) == 400
    assert len(display.threads) == 1
    assert threading.get_ident() not in display.threads

    # Order within each stream survives, interleaving is free
    for source in ("stdout", "stderr"):
        own = [line for line in display.lines if line.startswith(source)]
        assert own == [f"{source} {i}" for i in range(200)]


def test_log_receives_same_lines_as_display(router, display, tmp_path):
    path = tmp_path / "run.txt"
    sink = LogSink()
    sink.open(str(path))
    router.attach_log(sink)

    router.emit("start")
    router.deliver(OutputLine("out", StreamSource.STDOUT))
    router.deliver(OutputLine("err", StreamSource.STDERR))
    router.close_log()
    router.join()

    assert path.read_text(encoding="utf-8").splitlines() == display.lines
    assert not sink.is_open


def test_close_log_waits_for_earlier_lines(router, display, tmp_path):
    path = tmp_path / "run.txt"
    sink = LogSink()
    sink.open(str(path))
    router.attach_log(sink)

    router.emit("before")
    router.close_log()
    router.emit("after")
    router.join()

    assert display.lines == ["before", "after"]
    assert path.read_text(encoding="utf-8") == "before\n"


def test_display_only_lines_skip_the_log(router, display, tmp_path):
    path = tmp_path / "run.txt"
    sink = LogSink()
    sink.open(str(path))
    router.attach_log(sink)

    router.emit_display_only("warning")
    router.emit("logged")
    router.close_log()
    router.join()

    assert display.lines == ["warning", "logged"]
    assert path.read_text(encoding="utf-8") == "logged\n"


def test_failing_log_is_disabled_not_fatal(router, display):
    sink = FailingSink()
    router.attach_log(sink)

    router.emit("one")
    router.emit("two")
    router.join()

    assert display.lines == ["one", "two"]
    assert sink.writes == 1
    assert sink.closed == 1


def test_detached_display_is_not_called(router, display, tmp_path):
    path = tmp_path / "run.txt"
    sink = LogSink()
    sink.open(str(path))
    router.attach_log(sink)

    router.emit("seen")
    router.join()
    router.detach_display()
    router.emit("logged only")
    router.set_title("ignored")
    router.close_log()
    router.join()

    assert display.lines == ["seen"]
    assert display.titles == []
    assert path.read_text(encoding="utf-8").splitlines() == ["seen", "logged only"]


def test_deliveries_after_shutdown_are_dropped(display):
    router = OutputRouter(display=display)
    router.emit("kept")
    router.shutdown()

    router.emit("dropped")
    router.deliver(OutputLine("dropped too", StreamSource.STDERR))
    router.shutdown()

    assert display.lines == ["kept"]


def test_shutdown_closes_open_log(display, tmp_path):
    sink = LogSink()
    sink.open(str(tmp_path / "run.txt"))
    router = OutputRouter(display=display)
    router.attach_log(sink)
    router.emit("last")
    router.shutdown()

    assert not sink.is_open
    assert (tmp_path / "run.txt").read_text(encoding="utf-8") == "last\n"


def test_router_without_display_still_logs(tmp_path):
    sink = LogSink()
    sink.open(str(tmp_path / "run.txt"))
    router = OutputRouter()
    router.attach_log(sink)
    router.emit("headless")
    router.shutdown()

    assert (tmp_path / "run.txt").read_text(encoding="utf-8") == "headless\n"


class FlakyDisplay:
    """Display whose first line raises."""

    def __init__(self):
        self.lines = []

    def on_line(self, text):
        if not self.lines and text == "boom":
            self.lines.append(None)
            raise RuntimeError("widget gone")
        self.lines.append(text)

    def on_title_changed(self, text):
        pass


def test_display_error_does_not_stop_the_worker(tmp_path):
    display = FlakyDisplay()
    router = OutputRouter(display=display)
    sink = LogSink()
    assert sink.open(str(tmp_path / "run.txt"))
    router.attach_log(sink)
    try:
        router.emit("boom")
        router.emit("after")
        router.emit("still routed")
        router.join()
        assert display.lines == [None, "after", "still routed"]
    finally:
        router.shutdown()

    # Lines after the failure still reach the log
    log = (tmp_path / "run.txt").read_text(encoding="utf-8").splitlines()
    assert log[-2:] == ["after", "still routed"]


class BlockingDisplay:
    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def on_line(self, text):
        self.entered.set()
        self.release.wait(10)

    def on_title_changed(self, text):
        pass


def test_shutdown_is_bounded_by_its_timeout():
    display = BlockingDisplay()
    router = OutputRouter(display=display)
    try:
        router.emit("stuck")
        assert display.entered.wait(5)

        start = time.monotonic()
        router.shutdown(timeout=0.1)
        assert time.monotonic() - start < 1.0
    finally:
        display.release.set()
