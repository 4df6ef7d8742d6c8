"""Content layer — the applet directory as served and watched files.

Handles HTTP routing (applet files -> Starlette routes) and debounced
change detection for live reload.
"""

from mew.content.router import AppletRouter, resolve_asset
from mew.content.watcher import ChangeDetector, is_qualifying

__all__ = [
    "AppletRouter",
    "ChangeDetector",
    "is_qualifying",
    "resolve_asset",
]
