"""Event model for pipeline observability.

Every step from filesystem change to client notification records one
frozen event:

- ``ChangeReceived``: the watcher reported a change the coalescer accepted
- ``FileMirrored``: a path was copied into or removed from the mirror tree
- ``NotificationSent``: a notification was broadcast to connected clients

All events carry ``timestamp_ns``, a monotonic nanosecond timestamp.

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class ChangeReceived:
    """A raw filesystem change was accepted by the coalescer.

    Attributes:
        path: Root-relative path of the changed file.
        kind: ``added``, ``modified`` or ``removed``.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: Literal["added", "modified", "removed"]
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class FileMirrored:
    """A path was written to (or removed from) the mirror tree.

    Attributes:
        path: Root-relative path.
        action: ``copied`` or ``removed``.
        duration_ms: Time spent on the filesystem operation.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    action: Literal["copied", "removed"]
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class NotificationSent:
    """A change notification was broadcast.

    Attributes:
        path: Root-relative path carried by the notification.
        clients_notified: Number of clients the message was sent to.
        clients_failed: Number of sends that raised.
        duration_ms: Time spent fanning out.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    clients_notified: int
    clients_failed: int
    duration_ms: float
    timestamp_ns: int


type PipelineEvent = ChangeReceived | FileMirrored | NotificationSent


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
