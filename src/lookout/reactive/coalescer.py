"""Change coalescer — one notification per burst of filesystem events.

Editors rarely save in a single write: truncate + write, temp file +
rename and metadata touches all surface as separate raw events.  The
coalescer restarts a fixed quiet-period timer on every accepted event and
only notifies once the tree has been quiet for the whole period.

Only the most recent path of a burst is notified.  If two different
files change inside one quiet window, the earlier one is dropped at the
notification layer (the client reload for the later file usually covers
it; batching several paths per notification is a possible extension).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lookout._errors import MirrorError
from lookout.content.watcher import ChangeKind
from lookout.reactive.broadcaster import Notification

if TYPE_CHECKING:
    from lookout._types import NotifyFunc, RelativePath
    from lookout.config import Strategy
    from lookout.content.watcher import ChangeEvent
    from lookout.observability.collector import Collector
    from lookout.reactive.broadcaster import BroadcastHub
    from lookout.sync.mirror import MirrorSynchronizer

logger = logging.getLogger(__name__)

ACCEPTED_KINDS = frozenset({ChangeKind.ADDED, ChangeKind.MODIFIED, ChangeKind.REMOVED})


class Debouncer:
    """Owns at most one scheduled notification.

    ``schedule()`` cancels the pending task (if any) and starts a new one
    in the same synchronous step, so at no point do two timers exist.  The
    pending slot is cleared before the callback runs: a change that arrives
    while a broadcast is in flight schedules a fresh notification instead
    of cancelling the broadcast.

    Args:
        delay: Quiet period in seconds.
        callback: Awaited with the most recently scheduled path.

    """

    def __init__(self, delay: float, callback: NotifyFunc) -> None:
        self._delay = delay
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._latest: RelativePath | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """Whether a notification is currently scheduled."""
        return self._task is not None and not self._task.done()

    @property
    def latest(self) -> RelativePath | None:
        """Path the pending notification will carry, if one is scheduled."""
        return self._latest if self.pending else None

    def schedule(self, path: RelativePath) -> None:
        """Cancel any pending notification and schedule one for *path*."""
        self.cancel()
        self._latest = path
        self._task = asyncio.get_running_loop().create_task(self._fire(path))

    def cancel(self) -> None:
        """Drop the pending notification, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fire(self, path: RelativePath) -> None:
        await asyncio.sleep(self._delay)
        self._task = None
        self._latest = None
        try:
            await self._callback(path)
        except Exception:
            logger.exception("Notification for %s failed", path)


class ChangeCoalescer:
    """Entry point for raw change events.

    For each accepted event: mirror the path (when a mirror is configured),
    then (re)schedule the debounced notification.

    Args:
        debouncer: The process-wide debouncer.
        mirror: Real-time mirror, or None when mirroring is off.
        collector: Optional observability collector.

    """

    def __init__(
        self,
        debouncer: Debouncer,
        *,
        mirror: MirrorSynchronizer | None = None,
        collector: Collector | None = None,
    ) -> None:
        self._debouncer = debouncer
        self._mirror = mirror
        self._collector = collector

    @classmethod
    def for_hub(
        cls,
        hub: BroadcastHub,
        *,
        strategy: Strategy,
        quiet_period: float,
        mirror: MirrorSynchronizer | None = None,
        collector: Collector | None = None,
    ) -> ChangeCoalescer:
        """Build a coalescer whose notifications are broadcast on *hub*."""

        async def notify(path: RelativePath) -> int:
            return await hub.broadcast(Notification(file_path=path, strategy=strategy))

        return cls(Debouncer(quiet_period, notify), mirror=mirror, collector=collector)

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    async def on_raw_event(self, event: ChangeEvent) -> None:
        """Handle one raw change event."""
        if event.kind not in ACCEPTED_KINDS:
            return

        if self._collector is not None:
            self._collector.record_change(event.relative_path, kind=event.kind.value)

        if self._mirror is not None:
            try:
                await self._mirror.mirror_path(event.relative_path)
            except MirrorError as exc:
                logger.error("%s", exc)

        self._debouncer.schedule(event.relative_path)
