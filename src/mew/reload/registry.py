"""Client registry — the set of browsers subscribed to reload events.

Each subscriber is one open SSE stream. Frames are written to the
subscriber's bounded queue and drained by the stream's generator. A write
that cannot be delivered (stream already closed, or a consumer so slow its
queue filled up) removes the subscriber from the registry on the spot.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mew._errors import DeliveryError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mew._types import ClientID, Frame

# Frames buffered per subscriber before it counts as dead
MAX_PENDING_FRAMES = 32


def _new_client_id() -> ClientID:
    return uuid.uuid4().hex


def _new_queue() -> asyncio.Queue[Frame | None]:
    return asyncio.Queue(maxsize=MAX_PENDING_FRAMES)


@dataclass(eq=False, slots=True)
class Subscriber:
    """A connected browser tab.

    Compared and hashed by identity: every connection is distinct even when
    two tabs share a client id.

    Attributes:
        client_id: Identifier used in logs and events.
        queue: Write endpoint; ``None`` is the end-of-stream sentinel.
        keepalive: Task sending periodic keepalive comments, if running.
        closed: True once the write endpoint has been released.
        released: True once the channel has torn the connection down.

    """

    client_id: ClientID = field(default_factory=_new_client_id)
    queue: asyncio.Queue[Frame | None] = field(default_factory=_new_queue)
    keepalive: asyncio.Task[None] | None = None
    closed: bool = False
    released: bool = False

    def write(self, frame: Frame) -> None:
        """Queue a frame for delivery.

        Raises:
            DeliveryError: If the endpoint is closed or its queue is full.

        """
        if self.closed:
            msg = f"subscriber {self.client_id} is closed"
            raise DeliveryError(msg)
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull as exc:
            msg = f"subscriber {self.client_id} is not draining its stream"
            raise DeliveryError(msg) from exc

    def close(self) -> None:
        """Release the write endpoint and wake the reader."""
        if self.closed:
            return
        self.closed = True
        # A full queue means the reader is not waiting; it checks ``closed``
        # after every frame instead.
        if not self.queue.full():
            self.queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[Frame]:
        """Yield queued frames until the endpoint is closed."""
        while not self.closed:
            frame = await self.queue.get()
            if frame is None or self.closed:
                return
            yield frame


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    """Outcome of one broadcast.

    Attributes:
        delivered: Subscribers that received the frame.
        dropped: Subscribers removed because their write failed.

    """

    delivered: int
    dropped: int


class ClientRegistry:
    """The set of live subscribers.

    All access happens on the server's event loop, so there is no locking;
    broadcasts iterate a snapshot so a failed write can remove the entry
    being delivered to.

    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: set[Subscriber] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        return subscriber in self._subscribers

    def snapshot(self) -> frozenset[Subscriber]:
        """Current subscribers (safe to iterate while the registry changes)."""
        return frozenset(self._subscribers)

    def register(self, subscriber: Subscriber) -> None:
        """Add a subscriber."""
        self._subscribers.add(subscriber)

    def unregister(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber and release its endpoint.

        Safe to call any number of times. Returns True if the subscriber was
        still registered.

        """
        present = subscriber in self._subscribers
        self._subscribers.discard(subscriber)
        subscriber.close()
        return present

    def send(self, subscriber: Subscriber, frame: Frame) -> bool:
        """Deliver a frame to one subscriber, dropping it if the write fails.

        Returns True if the frame was queued.

        """
        if subscriber not in self._subscribers:
            return False
        try:
            subscriber.write(frame)
        except DeliveryError:
            self.unregister(subscriber)
            return False
        return True

    def broadcast(self, frame: Frame) -> BroadcastResult:
        """Deliver a frame to every subscriber.

        Delivery is best effort: a failed write removes that subscriber and
        delivery continues with the rest.

        """
        delivered = 0
        dropped = 0
        for subscriber in self.snapshot():
            if self.send(subscriber, frame):
                delivered += 1
            else:
                dropped += 1
        return BroadcastResult(delivered=delivered, dropped=dropped)

    def close_all(self) -> int:
        """Close every subscriber (server-initiated). Returns the count."""
        subscribers = self.snapshot()
        for subscriber in subscribers:
            self.unregister(subscriber)
        return len(subscribers)
