"""Mew configuration.

MewConfig is the central configuration object, frozen after creation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from mew._errors import ConfigError

if TYPE_CHECKING:
    from mew.reload.client import ReconnectPolicy


@dataclass(frozen=True, slots=True)
class MewConfig:
    """Configuration for a mew server or manifest build.

    Attributes:
        root: Directory holding the applet sources. Served as the document
              root and watched (non-recursively) for changes. Always resolved
              to an absolute path on construction.
        entry: Applet document served at ``/``.
        host: Bind address for dev/serve modes.
        port: Bind port for dev/serve modes.
        output: Output directory for ``mew build``.
        watch_suffix: File extension that triggers a reload.
        debounce_ms: Quiet period after the last change before reloading.
        keepalive_s: Interval between keepalive comments on each SSE stream.
        max_retries: Reconnect attempts the browser makes before giving up.
        retry_base_ms: Linear backoff step between reconnect attempts.
        created_by: Authorship tag written into manifests.
        window_width: Preferred applet window width written into manifests.
        window_height: Preferred applet window height written into manifests.
        featured: Featured flag written into manifests.

    """

    root: Path = field(default_factory=Path.cwd)
    entry: str = "index.html"
    host: str = "127.0.0.1"
    port: int = 4002
    output: Path = field(default_factory=lambda: Path("dist"))
    watch_suffix: str = ".html"
    debounce_ms: int = 300
    keepalive_s: float = 30.0
    max_retries: int = 10
    retry_base_ms: int = 1000
    created_by: str = "ryo"
    window_width: int = 420
    window_height: int = 625
    featured: bool = True

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

        if self.debounce_ms < 0:
            msg = f"debounce_ms must be >= 0, got {self.debounce_ms}"
            raise ConfigError(msg)
        if self.keepalive_s <= 0:
            msg = f"keepalive_s must be > 0, got {self.keepalive_s}"
            raise ConfigError(msg)
        if self.max_retries < 0:
            msg = f"max_retries must be >= 0, got {self.max_retries}"
            raise ConfigError(msg)
        if self.retry_base_ms <= 0:
            msg = f"retry_base_ms must be > 0, got {self.retry_base_ms}"
            raise ConfigError(msg)
        if not self.watch_suffix.startswith("."):
            msg = f"watch_suffix must start with '.', got {self.watch_suffix!r}"
            raise ConfigError(msg)

    @property
    def entry_path(self) -> Path:
        """Absolute path to the applet document."""
        return self.root / self.entry

    @property
    def output_path(self) -> Path:
        """Absolute path to the manifest output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output

    @property
    def debounce_s(self) -> float:
        """Debounce delay in seconds."""
        return self.debounce_ms / 1000

    @property
    def reconnect_policy(self) -> ReconnectPolicy:
        """Reconnect policy handed to the browser client."""
        from mew.reload.client import ReconnectPolicy

        return ReconnectPolicy(max_retries=self.max_retries, base_ms=self.retry_base_ms)
