"""Stack collector — records live-reload events into an ``EventLog``.

Components receive an optional collector and call its ``record_*`` methods;
passing ``None`` disables recording.
"""

from __future__ import annotations

from typing import Literal

from mew.observability.events import (
    ClientConnected,
    ClientDisconnected,
    FileChanged,
    ReloadBroadcast,
    now_ns,
)
from mew.observability.log import EventLog


class StackCollector:
    """Records events from the channel and the change detector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_connect(self, client_id: str, clients: int) -> None:
        self._log.append(ClientConnected(client_id=client_id, clients=clients, timestamp_ns=now_ns()))

    def record_disconnect(self, client_id: str, clients: int) -> None:
        self._log.append(
            ClientDisconnected(client_id=client_id, clients=clients, timestamp_ns=now_ns())
        )

    def record_change(self, path: str, kind: Literal["created", "modified"]) -> None:
        self._log.append(FileChanged(path=path, kind=kind, timestamp_ns=now_ns()))

    def record_broadcast(self, trigger_path: str, *, notified: int, dropped: int) -> None:
        """Record a reload broadcast and its delivery counts."""
        self._log.append(
            ReloadBroadcast(
                trigger_path=trigger_path,
                clients_notified=notified,
                clients_dropped=dropped,
                timestamp_ns=now_ns(),
            )
        )
