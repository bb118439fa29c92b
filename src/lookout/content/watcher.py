"""Source watcher — turns filesystem activity into ChangeEvents.

Wraps ``watchfiles.awatch`` so the watcher runs on the same event loop as
the debouncer and the broadcast hub.  The initial state of the tree is
never reported; only changes after startup are.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, awatch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from lookout._types import RelativePath


class ChangeKind(StrEnum):
    """Kinds of change the pipeline reacts to."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change detected by the watcher.

    Attributes:
        relative_path: Path relative to the watched root, forward slashes.
        kind: Type of filesystem change.

    """

    relative_path: RelativePath
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kinds.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: ChangeKind.ADDED,
    Change.modified: ChangeKind.MODIFIED,
    Change.deleted: ChangeKind.REMOVED,
}


def to_change_event(change: Change, path: str | Path, root: Path) -> ChangeEvent | None:
    """Translate one watchfiles change into a ChangeEvent.

    Returns None for paths outside *root*, the root itself, or change
    types we do not handle.

    """
    kind = _CHANGE_KIND_MAP.get(change)
    if kind is None:
        return None
    try:
        rel = Path(path).relative_to(root)
    except ValueError:
        return None
    if not rel.parts:
        return None
    return ChangeEvent(relative_path=rel.as_posix(), kind=kind)


class SourceWatcher:
    """Watches the source tree and yields ChangeEvents.

    Args:
        root: Absolute path of the watched tree.
        step_ms: How often watchfiles checks for new changes.
        debounce_ms: How long watchfiles groups raw notifications before
            yielding them.  Kept short; the coalescer owns the real quiet
            period.

    """

    def __init__(self, root: Path, *, step_ms: int = 50, debounce_ms: int = 50) -> None:
        self._root = root
        self._step_ms = step_ms
        self._debounce_ms = debounce_ms
        self._stop_event = asyncio.Event()

    @property
    def root(self) -> Path:
        return self._root

    def stop(self) -> None:
        """Ask the watch loop to finish after its current step."""
        self._stop_event.set()

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Async iterator over ChangeEvents.

        Each watchfiles batch is yielded sorted by path, so the last event
        of a batch is its alphabetically last path.
        """
        self._stop_event.clear()
        async for raw_changes in awatch(
            self._root,
            stop_event=self._stop_event,
            debounce=self._debounce_ms,
            step=self._step_ms,
        ):
            for change, path in sorted(raw_changes, key=lambda c: c[1]):
                event = to_change_event(change, path, self._root)
                if event is not None:
                    yield event
