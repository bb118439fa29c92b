"""Notification server — the WebSocket endpoint browsers connect to.

Every connection is registered with the BroadcastHub when it opens and
unregistered when it closes.  Clients never send anything meaningful; the
channel is server-to-client only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from websockets.asyncio.server import serve

from lookout._errors import ServerStartError

if TYPE_CHECKING:
    from websockets.asyncio.server import Server, ServerConnection

    from lookout.reactive.broadcaster import BroadcastHub

logger = logging.getLogger(__name__)


class NotificationServer:
    """Owns the listening socket and the per-connection lifecycle.

    Args:
        hub: Hub that receives each connection.
        host: Bind address (``0.0.0.0`` for all interfaces).
        port: Bind port (0 picks a free port).

    """

    def __init__(self, hub: BroadcastHub, *, host: str = "0.0.0.0", port: int = 9996) -> None:
        self._hub = hub
        self._host = host
        self._port = port
        self._server: Server | None = None

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        """The bound port (the configured one until started)."""
        if self._server is not None:
            for sock in self._server.sockets:
                return sock.getsockname()[1]
        return self._port

    async def start(self) -> None:
        """Open the listening socket.

        Raises:
            ServerStartError: If the address cannot be bound.

        """
        if self._server is not None:
            return
        try:
            self._server = await serve(self._handle, self._host or None, self._port)
        except OSError as exc:
            msg = f"Cannot listen on {self._host}:{self._port}: {exc.strerror or exc}"
            raise ServerStartError(msg) from exc
        logger.info("Notification channel listening on port %d", self.port)

    async def stop(self) -> None:
        """Close the listening socket and every open connection."""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    async def _handle(self, connection: ServerConnection) -> None:
        self._hub.register(connection)
        logger.info("WebSocket client connected (%d open)", self._hub.client_count)
        try:
            await connection.wait_closed()
        finally:
            self._hub.unregister(connection)
            logger.info("WebSocket client disconnected (%d open)", self._hub.client_count)
