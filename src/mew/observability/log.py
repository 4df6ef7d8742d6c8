"""Event log — bounded, queryable event store.

Keeps the most recent ``StackEvent`` objects in a ring buffer for the
``/__mew/stats`` endpoint and for tests. Written only from the server's
event loop.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mew.observability.events import StackEvent


class EventLog:
    """Ring buffer of events with simple filtering.

    Args:
        max_events: Maximum number of events to retain; the oldest are
            discarded first.

    """

    __slots__ = ("_events", "_max_events")

    def __init__(self, max_events: int = 2_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)

    def append(self, event: StackEvent) -> None:
        self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Return matching events, most recent first."""
        results: list[StackEvent] = []
        for event in reversed(self._events):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and event.timestamp_ns < since_ns:
                continue
            results.append(event)
        return results

    def recent(self, n: int = 20) -> list[StackEvent]:
        """Return the N most recent events, oldest first."""
        return list(self._events)[-n:]

    def clear(self) -> int:
        """Clear all events and return the count that was cleared."""
        count = len(self._events)
        self._events.clear()
        return count

    def __len__(self) -> int:
        return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Return summary statistics about stored events."""
        type_counts: dict[str, int] = {}
        for event in self._events:
            name = type(event).__name__
            type_counts[name] = type_counts.get(name, 0) + 1

        return {
            "total": len(self._events),
            "max_events": self._max_events,
            "by_type": type_counts,
        }
