"""Reload channel — the per-connection SSE protocol.

Every browser tab holds one stream open on the reload endpoint. The
channel owns the ``ClientRegistry`` and runs the protocol for each stream:

1. Register a new ``Subscriber``.
2. Send ``connected`` so the browser knows the stream is live.
3. Send a keepalive comment every ``keepalive_interval`` seconds so proxies
   do not cut an idle connection.
4. When the stream ends (browser went away, write failed, or the server is
   shutting down) cancel the keepalive and unregister, exactly once.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from mew.reload.frames import CONNECTED_FRAME, KEEPALIVE_FRAME, RELOAD_FRAME
from mew.reload.registry import BroadcastResult, ClientRegistry, Subscriber

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mew._types import Frame
    from mew.observability.collector import StackCollector

# Response headers for the event stream. X-Accel-Buffering stops nginx-style
# proxies from holding frames back.
SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

DEFAULT_KEEPALIVE_INTERVAL = 30.0


class ReloadChannel:
    """Fans reload signals out to every connected browser.

    Args:
        registry: Subscriber set; a fresh one is created when omitted.
        keepalive_interval: Seconds between keepalive comments per stream.
        collector: Optional event recorder.

    """

    def __init__(
        self,
        registry: ClientRegistry | None = None,
        *,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        collector: StackCollector | None = None,
    ) -> None:
        self._registry = registry if registry is not None else ClientRegistry()
        self._keepalive_interval = keepalive_interval
        self._collector = collector

    @property
    def registry(self) -> ClientRegistry:
        return self._registry

    @property
    def client_count(self) -> int:
        """Number of connected browsers."""
        return len(self._registry)

    def connect(self) -> Subscriber:
        """Register a new subscriber and start its keepalive.

        Must be called from a running event loop.

        """
        subscriber = Subscriber()
        self._registry.register(subscriber)
        self._registry.send(subscriber, CONNECTED_FRAME)
        subscriber.keepalive = asyncio.create_task(
            self._keepalive(subscriber),
            name=f"mew-keepalive-{subscriber.client_id}",
        )
        if self._collector is not None:
            self._collector.record_connect(subscriber.client_id, len(self._registry))
        return subscriber

    def disconnect(self, subscriber: Subscriber) -> None:
        """Tear down a subscriber's connection. Idempotent."""
        if subscriber.released:
            return
        subscriber.released = True
        if subscriber.keepalive is not None:
            subscriber.keepalive.cancel()
            subscriber.keepalive = None
        self._registry.unregister(subscriber)
        if self._collector is not None:
            self._collector.record_disconnect(subscriber.client_id, len(self._registry))

    async def stream(self) -> AsyncIterator[Frame]:
        """Run the protocol for one connection, yielding encoded frames.

        Registration happens when iteration starts, so a response that is
        never streamed never leaves a subscriber behind.

        """
        subscriber = self.connect()
        try:
            async for frame in subscriber.frames():
                yield frame
        finally:
            self.disconnect(subscriber)

    def broadcast_reload(self, trigger: str = "") -> BroadcastResult:
        """Send ``reload`` to every connected browser."""
        result = self._registry.broadcast(RELOAD_FRAME)
        if self._collector is not None:
            self._collector.record_broadcast(
                trigger, notified=result.delivered, dropped=result.dropped,
            )
        clients = "client" if result.delivered == 1 else "clients"
        label = Path(trigger).name if trigger else "reload"
        print(f"  ↻ {label} → {result.delivered} {clients}", file=sys.stderr)
        return result

    def close_all(self) -> int:
        """Disconnect every subscriber (server shutdown). Returns the count."""
        subscribers = self._registry.snapshot()
        for subscriber in subscribers:
            self.disconnect(subscriber)
        return len(subscribers)

    async def _keepalive(self, subscriber: Subscriber) -> None:
        while True:
            await asyncio.sleep(self._keepalive_interval)
            if not self._registry.send(subscriber, KEEPALIVE_FRAME):
                return
