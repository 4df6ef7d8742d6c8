"""Shared test fixtures for mew."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from mew.reload.registry import Subscriber

INDEX_HTML = "<!DOCTYPE html>\n<html>\n<head><title>Hello</title></head>\n<body><h1>Hello</h1></body>\n</html>\n"


@pytest.fixture
def applet_dir(tmp_path: Path) -> Path:
    """Create a minimal applet directory.

    Contains ``index.html`` (the entry), a second applet ``app.html`` and a
    stylesheet.
    """
    root = tmp_path / "applet"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "app.html").write_text("<html><body><p>App</p></body></html>")
    (root / "style.css").write_text("body { margin: 0; }\n")
    return root


# ---------------------------------------------------------------------------
# Simulated clock
# ---------------------------------------------------------------------------


@dataclass
class FakeTimer:
    when: float
    callback: Callable[[], object]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeClock:
    """Scheduler with manually advanced time (seconds)."""

    now: float = 0.0
    timers: list[FakeTimer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], object]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def armed(self) -> int:
        return sum(1 for t in self.timers if not t.cancelled)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------


def drain(subscriber: Subscriber) -> list[str]:
    """Remove and return every frame queued for a subscriber."""
    frames: list[str] = []
    while not subscriber.queue.empty():
        frame = subscriber.queue.get_nowait()
        if frame is not None:
            frames.append(frame)
    return frames


def parse_event_stream(text: str) -> list[str]:
    """Return the data of each event an ``EventSource`` would dispatch.

    Comment lines are skipped and multi-line data is joined with newlines,
    following the HTML event-stream parsing rules.
    """
    events: list[str] = []
    data: list[str] = []
    for line in text.split("\n"):
        if line == "":
            if data:
                events.append("\n".join(data))
            data = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data.append(value)
    return events
