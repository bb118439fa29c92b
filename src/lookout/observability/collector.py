"""Collector — the single recording surface for pipeline events.

Components receive an optional ``Collector`` and call its ``record_*``
methods; they never build event objects themselves.
"""

from __future__ import annotations

from lookout.observability.events import (
    ChangeReceived,
    FileMirrored,
    NotificationSent,
    now_ns,
)
from lookout.observability.log import EventLog


class Collector:
    """Records pipeline events into an :class:`EventLog`.

    Args:
        log: The EventLog to store events in (a fresh one by default).

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_change(self, path: str, *, kind: str) -> None:
        """Record an accepted filesystem change."""
        self._log.append(
            ChangeReceived(path=path, kind=kind, timestamp_ns=now_ns())  # type: ignore[arg-type]
        )

    def record_mirror(self, path: str, *, action: str, duration_ms: float = 0.0) -> None:
        """Record a mirror-tree write or removal."""
        self._log.append(
            FileMirrored(
                path=path,
                action=action,  # type: ignore[arg-type]
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_broadcast(
        self,
        path: str,
        *,
        clients_notified: int = 0,
        clients_failed: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a notification fan-out."""
        self._log.append(
            NotificationSent(
                path=path,
                clients_notified=clients_notified,
                clients_failed=clients_failed,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def summary(self) -> str:
        """One-line human summary of what has been recorded."""
        counts = self._log.stats()["by_type"]
        changes = counts.get("ChangeReceived", 0)
        copies = counts.get("FileMirrored", 0)
        sent = counts.get("NotificationSent", 0)
        return f"{changes} changes, {copies} mirror writes, {sent} notifications"
