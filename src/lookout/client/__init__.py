"""Client layer — applying notifications in the page.

``ChangeRouter`` is the state machine; ``render_client_script`` renders
the same behaviour as the script a browser page loads.
"""

from lookout.client.hmr import inject_client, render_client_script
from lookout.client.router import (
    ChangeRouter,
    FileKind,
    RouterEvent,
    classify,
    is_allowed_host,
)

__all__ = [
    "ChangeRouter",
    "FileKind",
    "RouterEvent",
    "classify",
    "inject_client",
    "is_allowed_host",
    "render_client_script",
]
