"""Change detector — turns bursts of file edits into one reload.

Watches the applet directory (non-recursively) with watchfiles. Additions
and modifications of files with the watched suffix are qualifying events;
everything else is ignored. Qualifying events feed a ``Debouncer`` and the
``on_change`` callback runs once the directory has been quiet for the
debounce delay.

Renames show up from watchfiles as a deletion plus an addition, so the
new name still qualifies.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change

from mew._errors import WatchError
from mew.reload.debounce import Debouncer

if TYPE_CHECKING:
    from collections.abc import Callable

    from mew.observability.collector import StackCollector
    from mew.reload.debounce import Scheduler


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified"]] = {
    Change.added: "created",
    Change.modified: "modified",
}


def is_qualifying(change: Change, path: str | Path, suffix: str = ".html") -> bool:
    """Whether a filesystem event should trigger a reload."""
    if change not in _CHANGE_KIND_MAP:
        return False
    return Path(path).name.lower().endswith(suffix.lower())


class ChangeDetector:
    """Watches one directory and calls ``on_change`` after each quiet burst.

    Args:
        directory: Directory to watch. Must exist when ``start()`` is called.
        on_change: Called with the last qualifying path of a burst.
        suffix: File extension that qualifies.
        delay: Debounce delay in seconds.
        scheduler: Timer source for the debouncer (defaults to the loop).
        collector: Optional event recorder.
        on_error: Called with a ``WatchError`` if watching fails after
            ``start()``. Watch failures are not retried.

    """

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[Path], object],
        *,
        suffix: str = ".html",
        delay: float = 0.3,
        scheduler: Scheduler | None = None,
        collector: StackCollector | None = None,
        on_error: Callable[[WatchError], object] | None = None,
    ) -> None:
        self._directory = directory
        self._on_change = on_change
        self._suffix = suffix
        self._collector = collector
        self._on_error = on_error
        self._debouncer = Debouncer(delay, self._fire, scheduler=scheduler)
        self._last_path: Path | None = None
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        """Whether the watch task is active."""
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> bool:
        """Whether a debounced reload is waiting to fire."""
        return self._debouncer.pending

    def notify(self, change: Change, path: str | Path) -> bool:
        """Feed one filesystem event. Returns True if it qualified."""
        if not is_qualifying(change, path, self._suffix):
            return False
        self._last_path = Path(path)
        if self._collector is not None:
            self._collector.record_change(str(path), _CHANGE_KIND_MAP[change])
        self._debouncer.trigger()
        return True

    def start(self) -> None:
        """Start watching in a background task.

        Raises:
            WatchError: If the directory does not exist or cannot be read.

        """
        if self.is_running:
            return
        if not self._directory.is_dir():
            msg = f"Cannot watch {self._directory}: not a directory"
            raise WatchError(msg)
        if not os.access(self._directory, os.R_OK | os.X_OK):
            msg = f"Cannot watch {self._directory}: not readable"
            raise WatchError(msg)

        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch_loop(), name="mew-watcher")
        self._task.add_done_callback(self._report_failure)

    async def stop(self) -> None:
        """Stop watching and drop any pending reload."""
        self._stop_event.set()
        self._debouncer.cancel()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _watch_loop(self) -> None:
        from watchfiles import awatch

        async for changes in awatch(
            self._directory,
            watch_filter=self._accepts,
            stop_event=self._stop_event,
            recursive=False,
            debounce=50,
            step=50,
        ):
            for change, path in changes:
                self.notify(change, path)

    def _accepts(self, change: Change, path: str) -> bool:
        return is_qualifying(change, path, self._suffix)

    def _fire(self) -> None:
        path = self._last_path or self._directory
        self._on_change(path)

    def _report_failure(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        print(f"  Watcher stopped: {exc}", file=sys.stderr)
        self._debouncer.cancel()
        if self._on_error is None:
            return
        if isinstance(exc, WatchError):
            error = exc
        else:
            msg = f"Cannot watch {self._directory}: {exc}"
            error = WatchError(msg)
            error.__cause__ = exc
        self._on_error(error)
