"""Single-flight debounce timer.

A ``Debouncer`` holds at most one armed timer. Every ``trigger()`` cancels
the armed timer and arms a new one ``delay`` seconds from now, so the
callback runs once per burst, ``delay`` after the burst's last trigger.

Timers come from a ``Scheduler``: anything with asyncio's
``call_later(delay, callback)`` shape. The running event loop is used when
none is given; tests pass a simulated clock.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], object], /) -> TimerHandle: ...


class Debouncer:
    """Coalesces bursts of triggers into one delayed callback.

    Args:
        delay: Quiet period in seconds.
        callback: Called with no arguments when the timer fires.
        scheduler: Timer source; defaults to the running event loop.

    """

    __slots__ = ("_callback", "_delay", "_handle", "_scheduler")

    def __init__(
        self,
        delay: float,
        callback: Callable[[], object],
        *,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._delay = delay
        self._callback = callback
        self._scheduler = scheduler
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """Whether a timer is armed."""
        return self._handle is not None

    def trigger(self) -> None:
        """Cancel any armed timer and arm a new one."""
        self.cancel()
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._handle = scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Disarm the pending timer, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
