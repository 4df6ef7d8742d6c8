"""Event model for live-reload observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Literal, TypeAlias

# ---------------------------------------------------------------------------
# Reload channel events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClientConnected:
    """A browser opened the reload channel.

    Attributes:
        client_id: Subscriber identifier.
        clients: Connected clients after this one registered.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    client_id: str
    clients: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ClientDisconnected:
    """A reload channel connection was torn down.

    Attributes:
        client_id: Subscriber identifier.
        clients: Connected clients after this one left.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    client_id: str
    clients: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Change detection events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileChanged:
    """A qualifying file changed on disk (before debouncing).

    Attributes:
        path: Absolute path of the changed file.
        kind: Type of filesystem change.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: Literal["created", "modified"]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReloadBroadcast:
    """A reload was pushed to connected browsers.

    Attributes:
        trigger_path: Last changed file of the debounced burst.
        clients_notified: Clients the reload frame was queued for.
        clients_dropped: Clients removed because the write failed.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    trigger_path: str
    clients_notified: int
    clients_dropped: int
    timestamp_ns: int


StackEvent: TypeAlias = ClientConnected | ClientDisconnected | FileChanged | ReloadBroadcast


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
