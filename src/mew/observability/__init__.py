"""Live-reload observability — structured events for the dev server.

Records subscriber churn, qualifying file changes and reload broadcasts as
frozen, timestamped events.

Quick Start:
    >>> from mew.observability import StackCollector
    >>> collector = StackCollector()
    >>> collector.record_broadcast("/site/app.html", notified=2, dropped=0)
    >>> collector.log.stats()["total"]
    1

"""

from mew.observability.collector import StackCollector
from mew.observability.events import (
    ClientConnected,
    ClientDisconnected,
    FileChanged,
    ReloadBroadcast,
    StackEvent,
    now_ns,
)
from mew.observability.log import EventLog

__all__ = [
    "ClientConnected",
    "ClientDisconnected",
    "EventLog",
    "FileChanged",
    "ReloadBroadcast",
    "StackCollector",
    "StackEvent",
    "now_ns",
]
