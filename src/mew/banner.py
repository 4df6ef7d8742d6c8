"""Startup banner — mode-aware status output.

Prints a short startup banner with timing and status indicators. Detects
``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mew._types import Mode
    from mew.config import MewConfig


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_ORANGE = "\033[38;5;214m" if _COLOR else ""


_MODE_STYLES: dict[Mode, tuple[str, str]] = {
    "dev": (_GREEN, "dev"),
    "build": (_YELLOW, "build"),
    "serve": (_CYAN, "serve"),
}


def _mode_badge(mode: Mode) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: MewConfig,
    mode: Mode,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the mew startup banner to stderr.

    Args:
        config: Resolved MewConfig.
        mode: One of ``"dev"``, ``"serve"``, ``"build"``.
        load_ms: Time spent setting up in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    from mew import __version__
    from mew.content.router import RELOAD_ENDPOINT

    header = f"  {_ORANGE}{_BOLD}=^.^={_RESET}  mew {_DIM}v{__version__}{_RESET}  {_mode_badge(mode)}"

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(f"  {_DIM}├─{_RESET} root: {_DIM}{config.root}{_RESET}{timing}")

    if mode == "build":
        lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}")
    else:
        entry = config.entry if config.entry_path.is_file() else f"{config.entry} (missing)"
        lines.append(f"  {_DIM}├─{_RESET} applet: {entry}")

    if mode == "dev":
        lines.append(
            f"  {_DIM}├─{_RESET} {_GREEN}live{_RESET} "
            f"— SSE on {_DIM}{RELOAD_ENDPOINT}{_RESET}"
        )
        lines.append(
            f"  {_DIM}└─{_RESET} watching *{config.watch_suffix} "
            f"{_DIM}({config.debounce_ms}ms debounce){_RESET}"
        )

    if mode in ("dev", "serve"):
        url = f"http://{config.host}:{config.port}"
        lines.append("")
        lines.append(f"  {_clickable_url(url)}")

    if mode == "dev":
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
