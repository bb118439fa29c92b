"""Pipeline observability — what the watcher saw and what it sent.

Quick Start:
    >>> from lookout.observability import Collector, EventLog
    >>> log = EventLog()
    >>> collector = Collector(log)
    >>> collector.record_change("app.js", kind="modified")
    >>> len(log)
    1

"""

from lookout.observability.collector import Collector
from lookout.observability.events import (
    ChangeReceived,
    FileMirrored,
    NotificationSent,
    PipelineEvent,
    now_ns,
)
from lookout.observability.log import EventLog

__all__ = [
    "ChangeReceived",
    "Collector",
    "EventLog",
    "FileMirrored",
    "NotificationSent",
    "PipelineEvent",
    "now_ns",
]
