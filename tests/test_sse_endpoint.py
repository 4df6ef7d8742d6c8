"""Tests for the reload stream endpoint, driven over raw ASGI."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from mew.app import create_app
from mew.config import MewConfig
from mew.content.router import RELOAD_ENDPOINT
from mew.reload.service import LiveReload

from .conftest import parse_event_stream


class _Browser:
    """One ``EventSource`` connection held open against the ASGI app."""

    def __init__(self, app: Any) -> None:
        self._app = app
        self._gone = asyncio.Event()
        self.messages: list[dict[str, Any]] = []
        self.task: asyncio.Task[None] | None = None

    def open(self) -> None:
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": RELOAD_ENDPOINT,
            "raw_path": RELOAD_ENDPOINT.encode(),
            "root_path": "",
            "query_string": b"",
            "headers": [(b"accept", b"text/event-stream")],
            "client": ("127.0.0.1", 50000),
            "server": ("127.0.0.1", 4002),
        }
        self.task = asyncio.create_task(self._app(scope, self._receive, self._send))

    def close(self) -> None:
        self._gone.set()

    async def _receive(self) -> dict[str, Any]:
        await self._gone.wait()
        return {"type": "http.disconnect"}

    async def _send(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int | None:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    @property
    def headers(self) -> dict[str, str]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return {k.decode(): v.decode() for k, v in message["headers"]}
        return {}

    @property
    def body(self) -> str:
        return "".join(
            m.get("body", b"").decode()
            for m in self.messages
            if m["type"] == "http.response.body"
        )

    @property
    def events(self) -> list[str]:
        return parse_event_stream(self.body)


async def _until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def app(applet_dir: Path) -> Any:
    return create_app(MewConfig(root=applet_dir, keepalive_s=0.02), live=True)


def _service(app: Any) -> LiveReload:
    return app.state.live


class TestReloadStream:
    @pytest.mark.asyncio
    async def test_response_headers(self, app: Any) -> None:
        browser = _Browser(app)
        browser.open()
        await _until(lambda: browser.status is not None)

        assert browser.status == 200
        assert browser.headers["content-type"].startswith("text/event-stream")
        assert browser.headers["cache-control"] == "no-cache"
        assert browser.headers["connection"] == "keep-alive"

        browser.close()
        await browser.task

    @pytest.mark.asyncio
    async def test_connected_then_reload(self, app: Any) -> None:
        browser = _Browser(app)
        browser.open()
        await _until(lambda: browser.events == ["connected"])
        assert _service(app).channel.client_count == 1

        result = _service(app).channel.broadcast_reload("index.html")
        assert result.delivered == 1
        await _until(lambda: browser.events == ["connected", "reload"])

        browser.close()
        await browser.task

    @pytest.mark.asyncio
    async def test_keepalive_comments_on_idle_stream(self, app: Any) -> None:
        browser = _Browser(app)
        browser.open()
        await _until(lambda: browser.body.count(": keepalive\n\n") >= 2)

        # comments never surface as events
        assert browser.events == ["connected"]

        browser.close()
        await browser.task

    @pytest.mark.asyncio
    async def test_disconnect_unregisters(self, app: Any) -> None:
        browsers = [_Browser(app) for _ in range(3)]
        for browser in browsers:
            browser.open()
        await _until(lambda: _service(app).channel.client_count == 3)

        browsers[0].close()
        await browsers[0].task
        assert _service(app).channel.client_count == 2

        result = _service(app).channel.broadcast_reload()
        assert result.delivered == 2

        for browser in browsers[1:]:
            browser.close()
            await browser.task
        assert _service(app).channel.client_count == 0

    @pytest.mark.asyncio
    async def test_shutdown_ends_streams(self, app: Any) -> None:
        browsers = [_Browser(app) for _ in range(2)]
        for browser in browsers:
            browser.open()
        await _until(lambda: _service(app).channel.client_count == 2)

        await _service(app).stop()

        # streams finish without the browser going away
        await asyncio.wait_for(asyncio.gather(*(b.task for b in browsers)), 2.0)
        assert _service(app).channel.client_count == 0
        for browser in browsers:
            assert browser.messages[-1] == {
                "type": "http.response.body", "body": b"", "more_body": False,
            }
