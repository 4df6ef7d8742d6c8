"""Manifest export — applets as JSON descriptors.

Produces one manifest per HTML applet for hosts that load applets from
structured data rather than from a server.
"""

from mew.export.manifest import AppletManifest, BuildResult, ManifestBuilder

__all__ = ["AppletManifest", "BuildResult", "ManifestBuilder"]
