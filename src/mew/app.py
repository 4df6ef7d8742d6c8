"""Mew application — the Starlette app and the dev/serve/build entry points.

``create_app`` assembles routes and, in dev mode, the live-reload service
whose lifetime follows the ASGI lifespan. The three public functions (dev,
serve, build) are the primary entry points.
"""

from __future__ import annotations

import contextlib
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn
from starlette.applications import Starlette

from mew._errors import WatchError
from mew.config_loader import load_config

if TYPE_CHECKING:
    import socket
    from collections.abc import AsyncIterator

    from mew.config import MewConfig
    from mew.observability.collector import StackCollector
    from mew.reload.debounce import Scheduler
    from mew.reload.service import LiveReload


def create_app(
    config: MewConfig,
    *,
    live: bool = True,
    collector: StackCollector | None = None,
    scheduler: Scheduler | None = None,
) -> Starlette:
    """Create the Starlette app serving ``config.root``.

    With ``live=True`` the app mounts the reload channel and stats endpoint,
    injects the reload client into HTML, and watches the root for changes
    between lifespan startup and shutdown. The service is exposed as
    ``app.state.live`` (None when not live).

    """
    from mew.content.router import AppletRouter

    service: LiveReload | None = None
    if live:
        from mew.observability import StackCollector
        from mew.reload.service import LiveReload

        collector = collector if collector is not None else StackCollector()
        service = LiveReload(config, collector=collector, scheduler=scheduler)
        router = AppletRouter(config, service.channel, collector)
    else:
        router = AppletRouter(config)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        if service is not None:
            service.start()
        try:
            yield
        finally:
            if service is not None:
                await service.stop()

    app = Starlette(routes=router.routes(), lifespan=lifespan)
    app.state.live = service
    app.state.config = config
    return app


class _Server(uvicorn.Server):
    """uvicorn server that ends reload streams as soon as shutdown begins.

    Open SSE streams never finish on their own, so waiting for them would
    stall shutdown until the graceful timeout. Order: stop accepting new
    connections, close the watch handle and every reload stream, then let
    uvicorn drain and release the port.

    A watch failure while serving triggers the same shutdown.

    """

    def __init__(self, config: uvicorn.Config, service: LiveReload | None) -> None:
        super().__init__(config)
        self._service = service
        if service is not None:
            service.on_failure = self._watch_failed

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        for server in self.servers:
            server.close()
        if self._service is not None:
            await self._service.stop()
        await super().shutdown(sockets=sockets)

    def _watch_failed(self, error: WatchError) -> None:
        self.should_exit = True


def _run(app: Starlette, config: MewConfig) -> None:
    server_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=5,
    )
    service: LiveReload | None = app.state.live
    server = _Server(server_config, service)
    server.run()

    if service is not None and service.failure is not None:
        raise service.failure
    if not server.started:
        # uvicorn has already logged why startup failed
        sys.exit(1)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def dev(root: str | Path = ".", **kwargs: object) -> None:
    """Start the live-reload development server.

    Serves the applet with the reload client injected and broadcasts a
    reload to every open tab shortly after its HTML changes on disk.

    Args:
        root: Applet directory.
        **kwargs: Override MewConfig fields.

    Raises:
        WatchError: If the applet directory cannot be watched, at startup or
            while serving. The server shuts down first.

    """
    from mew.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()

    if not config.root.is_dir():
        msg = f"Cannot watch {config.root}: not a directory"
        raise WatchError(msg)

    app = create_app(config, live=True)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, mode="dev", load_ms=load_ms)
    _run(app, config)


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Serve the applet without live reload.

    Args:
        root: Applet directory.
        **kwargs: Override MewConfig fields.

    """
    from mew.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()
    app = create_app(config, live=False)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, mode="serve", load_ms=load_ms)
    _run(app, config)


def build(root: str | Path = ".", **kwargs: object) -> None:
    """Export a JSON manifest for every applet in the directory.

    Args:
        root: Applet directory.
        **kwargs: Override MewConfig fields.

    """
    from mew.banner import print_banner
    from mew.export.manifest import ManifestBuilder

    config = load_config(Path(root), **kwargs)
    print_banner(config, mode="build")

    result = ManifestBuilder(config).build()
    _print_build_summary(result)


def _print_build_summary(result: object) -> None:
    """Print build completion summary to stderr."""
    from mew.export.manifest import BuildResult

    if not isinstance(result, BuildResult):
        return

    count = len(result.files)
    lines = [
        "",
        "─" * 41,
        f"  Generated {count} applet{'s' if count != 1 else ''}",
        f"  Output: {result.output_dir}",
        f"  Done in {result.duration_ms:.0f}ms",
    ]
    print("\n".join(lines), file=sys.stderr)
