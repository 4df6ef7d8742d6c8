"""Applet manifests — package each HTML applet as a JSON descriptor.

Reads every applet in the root directory and writes ``<stem>.json`` to the
output directory. A manifest carries the full document plus the metadata a
desktop-style host needs to open it in a window: title, icon, window size,
timestamps, author and a featured flag.

This is a one-shot batch step; it does not interact with the dev server.
"""

from __future__ import annotations

import html
import json
import re
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mew._errors import ManifestError

if TYPE_CHECKING:
    from mew.config import MewConfig


_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_H1_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")

DEFAULT_TITLE = "Untitled"
DEFAULT_ICON = "📄"

# Checked in order; the first keyword found in the filename wins.
_ICONS: tuple[tuple[str, str], ...] = (
    ("simcity", "🏙️"),
    ("city", "🏙️"),
    ("game", "🎮"),
    ("calculator", "🔢"),
    ("clock", "⏰"),
    ("calendar", "📅"),
    ("todo", "✅"),
    ("notes", "📝"),
    ("chat", "💬"),
    ("weather", "🌤️"),
)


def extract_title(document: str) -> str:
    """Title of an applet: ``<title>``, else the first ``<h1>``, else Untitled.

    A ``<title>`` or ``<h1>`` that is present but empty yields ``""``; the
    builder falls back to the file name in that case.

    """
    match = _TITLE_RE.search(document)
    if match:
        return html.unescape(match.group(1).strip())
    match = _H1_RE.search(document)
    if match:
        return html.unescape(_TAG_RE.sub("", match.group(1)).strip())
    return DEFAULT_TITLE


def icon_for(filename: str) -> str:
    """Pick an emoji icon from keywords in the filename."""
    lowered = filename.lower()
    for keyword, icon in _ICONS:
        if keyword in lowered:
            return icon
    return DEFAULT_ICON


@dataclass(frozen=True, slots=True)
class AppletManifest:
    """Descriptor for one applet.

    Attributes:
        content: The full HTML document.
        title: Display title.
        icon: Emoji icon.
        name: Generated application name (``<stem>.app``).
        window_width: Preferred window width in pixels.
        window_height: Preferred window height in pixels.
        created_at: Creation time, epoch milliseconds.
        created_by: Authorship tag.
        updated_at: Last update time, epoch milliseconds.
        featured: Whether the host should feature this applet.

    """

    content: str
    title: str
    icon: str
    name: str
    window_width: int
    window_height: int
    created_at: int
    created_by: str
    updated_at: int
    featured: bool

    def to_json(self) -> dict[str, Any]:
        """Serialize with the camelCase keys consumers expect."""
        return {
            "content": self.content,
            "title": self.title,
            "icon": self.icon,
            "name": self.name,
            "windowWidth": self.window_width,
            "windowHeight": self.window_height,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
            "updatedAt": self.updated_at,
            "featured": self.featured,
        }


@dataclass(frozen=True, slots=True)
class ManifestFile:
    """Record of a single manifest written during a build.

    Attributes:
        source_path: Applet HTML file.
        output_path: Written JSON file.
        size_bytes: Size of the written file.

    """

    source_path: Path
    output_path: Path
    size_bytes: int


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Aggregate result of a manifest build.

    Attributes:
        files: All manifests written.
        duration_ms: Total wall-clock time.
        output_dir: Absolute path to the output directory.

    """

    files: tuple[ManifestFile, ...]
    duration_ms: float
    output_dir: Path


class ManifestBuilder:
    """Writes a manifest for every applet in ``config.root``.

    Args:
        config: Frozen mew configuration.
        clock: Returns the current time in epoch milliseconds.

    """

    def __init__(
        self,
        config: MewConfig,
        *,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._config = config
        self._clock = clock or (lambda: int(time.time() * 1000))

    def sources(self) -> list[Path]:
        """Applet files in the root, sorted by name (non-recursive)."""
        suffix = self._config.watch_suffix.lower()
        return sorted(
            p for p in self._config.root.iterdir()
            if p.is_file() and p.name.lower().endswith(suffix)
        )

    def manifest_for(self, path: Path) -> AppletManifest:
        """Build the manifest for one applet file."""
        try:
            document = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Failed to read applet {path.name}: {exc}"
            raise ManifestError(msg) from exc

        timestamp = self._clock()
        return AppletManifest(
            content=document,
            title=extract_title(document) or path.stem,
            icon=icon_for(path.name),
            name=f"{path.stem}.app",
            window_width=self._config.window_width,
            window_height=self._config.window_height,
            created_at=timestamp,
            created_by=self._config.created_by,
            updated_at=timestamp,
            featured=self._config.featured,
        )

    def build(self) -> BuildResult:
        """Write every manifest and return what was written.

        Raises:
            ManifestError: If the root cannot be listed or a file cannot be
                read or written.

        """
        start = time.perf_counter()
        output_dir = self._config.output_path

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            sources = self.sources()
        except OSError as exc:
            msg = f"Failed to prepare manifest build: {exc}"
            raise ManifestError(msg) from exc

        files: list[ManifestFile] = []
        for source in sources:
            manifest = self.manifest_for(source)
            target = output_dir / f"{source.stem}.json"
            data = json.dumps(manifest.to_json(), indent=2, ensure_ascii=False).encode("utf-8")
            try:
                target.write_bytes(data)
            except OSError as exc:
                msg = f"Failed to write {target}: {exc}"
                raise ManifestError(msg) from exc
            print(f"  ✓ {target.name}", file=sys.stderr)
            files.append(ManifestFile(source_path=source, output_path=target, size_bytes=len(data)))

        elapsed = (time.perf_counter() - start) * 1000
        return BuildResult(files=tuple(files), duration_ms=elapsed, output_dir=output_dir)
