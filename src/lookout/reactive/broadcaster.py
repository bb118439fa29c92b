"""Broadcast hub — pushes change notifications to connected browsers.

Keeps the set of open client channels and fans one serialized
notification out to all of them.  Delivery is fire-and-forget: nothing is
acknowledged or retried, and a client that is not connected at broadcast
time never hears about the change.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from lookout._errors import ChannelSendError, MalformedMessageError
from lookout.config import Strategy

if TYPE_CHECKING:
    from lookout._types import RelativePath
    from lookout.observability.collector import Collector

logger = logging.getLogger(__name__)

FILE_CHANGE = "fileChange"


@dataclass(frozen=True, slots=True)
class Notification:
    """The wire-level unit sent to every client.

    Attributes:
        file_path: Root-relative, forward-slash path of the changed file.
        strategy: Extra invalidation the client performs afterwards.
        type: Message type; always ``"fileChange"``.

    """

    file_path: RelativePath
    strategy: Strategy = Strategy.ALWAYS_TRIGGER_HASHCHANGE
    type: str = FILE_CHANGE

    def to_json(self) -> str:
        """Serialize to the JSON object clients expect."""
        return json.dumps({
            "type": self.type,
            "filePath": self.file_path,
            "strategy": str(self.strategy),
        })

    @classmethod
    def from_json(cls, raw: str | bytes) -> Notification:
        """Decode a message produced by :meth:`to_json`.

        Unknown strategies decode as ``Strategy.NONE`` so older clients keep
        applying file changes.

        Raises:
            MalformedMessageError: If *raw* is not a JSON object with a
                string ``type`` and ``filePath``.

        """
        try:
            data: Any = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"Invalid JSON: {exc}"
            raise MalformedMessageError(msg) from exc

        if not isinstance(data, dict):
            msg = f"Expected a JSON object, got {type(data).__name__}"
            raise MalformedMessageError(msg)
        msg_type = data.get("type")
        file_path = data.get("filePath")
        if not isinstance(msg_type, str) or not isinstance(file_path, str):
            msg = "Message needs string 'type' and 'filePath' fields"
            raise MalformedMessageError(msg)

        try:
            strategy = Strategy(data.get("strategy", Strategy.NONE))
        except ValueError:
            strategy = Strategy.NONE
        return cls(file_path=file_path, strategy=strategy, type=msg_type)


class Channel(Protocol):
    """What the hub needs from a client connection (a websockets connection)."""

    @property
    def state(self) -> State: ...

    async def send(self, message: str) -> None: ...


class BroadcastHub:
    """Tracks connected clients and fans notifications out to them.

    Runs on a single event loop, so no lock is needed.  Broadcasting
    iterates over a snapshot, so a client closing mid-broadcast is safe.
    Sends to all channels run concurrently: a stalled client never delays
    delivery to the others.

    """

    def __init__(self, *, collector: Collector | None = None) -> None:
        self._channels: set[Channel] = set()
        self._collector = collector

    @property
    def client_count(self) -> int:
        """Number of registered channels."""
        return len(self._channels)

    def register(self, channel: Channel) -> None:
        """Add a channel when its connection opens."""
        self._channels.add(channel)

    def unregister(self, channel: Channel) -> None:
        """Remove a channel on close or error.  Safe to call twice."""
        self._channels.discard(channel)

    async def broadcast(self, notification: Notification) -> int:
        """Send *notification* to every open channel.

        Channels that are closing or closed are skipped.  A failed or slow
        send is isolated to its own channel.

        Returns:
            Number of channels the message was sent to.

        """
        message = notification.to_json()
        t0 = time.perf_counter()

        targets = [c for c in tuple(self._channels) if c.state is State.OPEN]
        results = await asyncio.gather(*(_send(c, message) for c in targets))
        sent = sum(results)
        failed = len(results) - sent

        if sent:
            logger.info("Notified %d client(s) about change in %s", sent, notification.file_path)
        if self._collector is not None:
            self._collector.record_broadcast(
                notification.file_path,
                clients_notified=sent,
                clients_failed=failed,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
        return sent


async def _send(channel: Channel, message: str) -> bool:
    try:
        await channel.send(message)
    except (ConnectionClosed, OSError) as exc:
        error = ChannelSendError(f"Send to {_describe(channel)} failed: {exc}")
        logger.warning("%s", error)
        return False
    return True


def _describe(channel: Channel) -> str:
    remote = getattr(channel, "remote_address", None)
    if isinstance(remote, tuple) and len(remote) >= 2:
        return f"{remote[0]}:{remote[1]}"
    return "client"
