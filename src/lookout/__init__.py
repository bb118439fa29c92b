"""Lookout — a live-reload pipeline for browser development.

Watches a source tree, optionally mirrors it into a build tree, and tells
every connected browser which file changed.  The browser client hot-swaps
scripts, refreshes stylesheets, and reloads the page only for markup.

Quick start::

    import lookout

    lookout.run("src/", watch=True)

Two jobs, independent of each other::

    lookout.sync("src/", dest="build/")    # One-off mirror reconciliation
    lookout.run("src/", watch=True)        # WebSocket channel + live watch

Browser side::

    from lookout.client import render_client_script
    html = render_client_script(port=9996)

"""

__version__ = "0.1.0.dev0"
__all__ = [
    "LookoutConfig",
    "__version__",
    "run",
    "sync",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import lookout`` fast; the watcher and WebSocket stack are only
    imported when an entry point is actually used.
    """
    if name == "LookoutConfig":
        from lookout.config import LookoutConfig

        return LookoutConfig

    if name == "run":
        from lookout.app import run

        return run

    if name == "sync":
        from lookout.app import sync

        return sync

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
