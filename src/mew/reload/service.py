"""Live-reload service — wires the change detector to the reload channel.

Owns one ``ReloadChannel`` and one ``ChangeDetector`` for an applet
directory. The detector only ever calls ``broadcast_reload``; all registry
mutation stays inside the channel.

A watch failure, at startup or later, is fatal: it is kept on ``failure``
and handed to ``on_failure`` so the server can shut down and exit non-zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mew._errors import WatchError
from mew.content.watcher import ChangeDetector
from mew.reload.channel import ReloadChannel

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from mew.config import MewConfig
    from mew.observability.collector import StackCollector
    from mew.reload.debounce import Scheduler


class LiveReload:
    """Channel plus detector, started and stopped together.

    Args:
        config: Frozen mew configuration.
        collector: Optional event recorder shared by both parts.
        scheduler: Debounce timer source (defaults to the event loop).

    Attributes:
        on_failure: Called once with the ``WatchError`` that stopped the
            detector. Set by the server that runs this service.

    """

    def __init__(
        self,
        config: MewConfig,
        *,
        collector: StackCollector | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.on_failure: Callable[[WatchError], object] | None = None
        self._failure: WatchError | None = None
        self.channel = ReloadChannel(
            keepalive_interval=config.keepalive_s,
            collector=collector,
        )
        self.detector = ChangeDetector(
            config.root,
            self._on_change,
            suffix=config.watch_suffix,
            delay=config.debounce_s,
            scheduler=scheduler,
            collector=collector,
            on_error=self._fail,
        )

    @property
    def failure(self) -> WatchError | None:
        """The error that stopped watching, if any."""
        return self._failure

    def start(self) -> None:
        """Start watching.

        Raises:
            WatchError: If the applet directory cannot be watched.

        """
        try:
            self.detector.start()
        except WatchError as exc:
            self._fail(exc)
            raise

    async def stop(self) -> None:
        """Close the watch handle, then every open reload stream."""
        await self.detector.stop()
        self.channel.close_all()

    def _on_change(self, path: Path) -> None:
        self.channel.broadcast_reload(str(path))

    def _fail(self, error: WatchError) -> None:
        if self._failure is not None:
            return
        self._failure = error
        if self.on_failure is not None:
            self.on_failure(error)
