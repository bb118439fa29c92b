"""Content layer — the raw filesystem event source."""

from lookout.content.watcher import ChangeEvent, ChangeKind, SourceWatcher, to_change_event

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "SourceWatcher",
    "to_change_event",
]
