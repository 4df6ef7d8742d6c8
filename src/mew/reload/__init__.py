"""Reload layer — change notification to the browser.

Connects debounced file changes to connected tabs through the SSE
broadcast channel and the reconnecting browser client.
"""

from mew.reload.channel import ReloadChannel
from mew.reload.client import ReconnectPolicy, render_client_script
from mew.reload.debounce import Debouncer
from mew.reload.inject import inject_script
from mew.reload.registry import BroadcastResult, ClientRegistry, Subscriber
from mew.reload.service import LiveReload

__all__ = [
    "BroadcastResult",
    "ClientRegistry",
    "Debouncer",
    "LiveReload",
    "ReconnectPolicy",
    "ReloadChannel",
    "Subscriber",
    "inject_script",
    "render_client_script",
]
