"""Applet router — HTTP routes for the applet and its reload channel.

Serves the applet document at ``/``, any other file under the root by its
path, and (in dev mode) the SSE reload channel plus a stats endpoint. HTML
served in dev mode carries the reload client script.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from starlette.responses import FileResponse, JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route

from mew.reload.channel import SSE_HEADERS
from mew.reload.inject import inject_script

if TYPE_CHECKING:
    from starlette.requests import Request

    from mew.config import MewConfig
    from mew.observability.collector import StackCollector
    from mew.reload.channel import ReloadChannel


# SSE endpoint path for reload signals
RELOAD_ENDPOINT = "/__mew/events"
STATS_ENDPOINT = "/__mew/stats"

_HTML_SUFFIXES = frozenset({".html", ".htm"})


def resolve_asset(root: Path, url_path: str) -> Path | None:
    """Map a request path to a file under ``root``.

    Returns None for missing files, directories, and paths that would
    escape the root.

    """
    relative = url_path.lstrip("/")
    if not relative:
        return None
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root.resolve())
    except ValueError:
        return None
    if not candidate.is_file():
        return None
    return candidate


def _not_found() -> Response:
    return PlainTextResponse("Not Found", status_code=404)


class AppletRouter:
    """Builds the Starlette route table for one applet directory.

    Args:
        config: Frozen mew configuration.
        channel: Reload channel; when None, no reload endpoint is mounted and
            nothing is injected (``mew serve``).
        collector: Event recorder backing the stats endpoint (dev mode).

    """

    def __init__(
        self,
        config: MewConfig,
        channel: ReloadChannel | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._config = config
        self._channel = channel
        self._collector = collector
        self._script: str | None = None
        if channel is not None:
            from mew.reload.client import render_client_script

            self._script = render_client_script(config.reconnect_policy, RELOAD_ENDPOINT)

    @property
    def live(self) -> bool:
        """Whether served HTML carries the reload client."""
        return self._channel is not None

    def routes(self) -> list[Route]:
        """Return the route table; the catch-all asset route comes last."""
        routes: list[Route] = []
        if self.live:
            routes.append(Route(RELOAD_ENDPOINT, self.events, name="mew:events"))
        if self._collector is not None:
            routes.append(Route(STATS_ENDPOINT, self.stats, name="mew:stats"))
        routes.append(Route("/", self.document, name="mew:document"))
        routes.append(Route("/index.html", self.document, name="mew:index"))
        routes.append(Route("/{path:path}", self.asset, name="mew:asset"))
        return routes

    async def document(self, request: Request) -> Response:
        """Serve the applet entry document."""
        path = self._config.entry_path
        if not path.is_file():
            return _not_found()
        return self._html_response(path)

    async def asset(self, request: Request) -> Response:
        """Serve any other file under the root, or 404."""
        path = resolve_asset(self._config.root, request.path_params["path"])
        if path is None:
            return _not_found()
        if path.suffix.lower() in _HTML_SUFFIXES:
            return self._html_response(path)
        return FileResponse(path)

    async def events(self, request: Request) -> Response:
        """Open a reload stream for one browser tab."""
        assert self._channel is not None
        return StreamingResponse(
            self._channel.stream(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    async def stats(self, request: Request) -> Response:
        """Connected clients and a summary of recorded events."""
        assert self._collector is not None
        payload: dict[str, Any] = {
            "clients": self._channel.client_count if self._channel is not None else 0,
            "event_log": self._collector.log.stats(),
        }
        return JSONResponse(payload)

    def _html_response(self, path: Path) -> Response:
        # surrogateescape keeps bytes that are not valid UTF-8 intact
        raw = path.read_bytes()
        headers: dict[str, str] = {}
        if self._script is not None:
            html = inject_script(raw.decode("utf-8", "surrogateescape"), self._script)
            raw = html.encode("utf-8", "surrogateescape")
            headers["Cache-Control"] = "no-cache"
        return Response(raw, media_type="text/html; charset=utf-8", headers=headers)
