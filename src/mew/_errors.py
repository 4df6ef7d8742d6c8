"""Mew error hierarchy.

All mew-specific errors inherit from MewError for easy catching.
"""


class MewError(Exception):
    """Base error for all mew operations."""


class ConfigError(MewError):
    """Invalid or missing configuration."""


class WatchError(MewError):
    """The change detector could not watch its target directory."""


class DeliveryError(MewError):
    """A frame could not be written to a subscriber."""


class ManifestError(MewError):
    """Error while exporting applet manifests."""
