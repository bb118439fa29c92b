"""Reactive layer — from filesystem change to connected browsers.

Coalesces bursts of raw events, then broadcasts one notification to every
client connected to the notification server.
"""

from lookout.reactive.broadcaster import BroadcastHub, Notification
from lookout.reactive.coalescer import ChangeCoalescer, Debouncer
from lookout.reactive.server import NotificationServer

__all__ = [
    "BroadcastHub",
    "ChangeCoalescer",
    "Debouncer",
    "Notification",
    "NotificationServer",
]
