"""Mew — a live-reload development server for single-page HTML applets.

Serves an applet directory and refreshes every open browser tab shortly
after an HTML file in it changes on disk.

Quick start::

    import mew

    mew.dev("my-applet/")

Three modes::

    mew.dev("my-applet/")         # Serve with live reload
    mew.serve("my-applet/")       # Serve without live reload
    mew.build("my-applet/")       # Export JSON applet manifests

"""

__version__ = "0.1.0.dev0"
__all__ = [
    "MewConfig",
    "__version__",
    "build",
    "dev",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import mew`` fast while providing a clean top-level API.
    """
    if name == "MewConfig":
        from mew.config import MewConfig

        return MewConfig

    if name == "dev":
        from mew.app import dev

        return dev

    if name == "build":
        from mew.app import build

        return build

    if name == "serve":
        from mew.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
