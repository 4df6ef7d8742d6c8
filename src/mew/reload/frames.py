"""SSE wire framing for the reload channel.

Each frame is a block of ``field: value`` lines terminated by a blank line.
Lines starting with ``:`` are comments: ``EventSource`` never delivers them
to event handlers, which makes them suitable for keepalives.
"""

from __future__ import annotations

from mew._types import Frame

# Data tokens understood by the browser client
CONNECTED = "connected"
RELOAD = "reload"


def encode_event(data: str, event: str | None = None) -> Frame:
    """Encode a data event, splitting multi-line data into several lines."""
    lines: list[str] = []
    if event:
        lines.append(f"event: {event}")
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


def encode_comment(text: str = "") -> Frame:
    """Encode a comment frame (ignored by ``EventSource``)."""
    lines = text.splitlines() or [""]
    return "\n".join(f": {line}" if line else ":" for line in lines) + "\n\n"


CONNECTED_FRAME = encode_event(CONNECTED)
RELOAD_FRAME = encode_event(RELOAD)
KEEPALIVE_FRAME = encode_comment("keepalive")
