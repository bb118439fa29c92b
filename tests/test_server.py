"""Tests for lookout.reactive.server — the WebSocket notification channel."""

from __future__ import annotations

import asyncio
import json
import socket

import pytest
from websockets.asyncio.client import connect

from lookout._errors import ServerStartError
from lookout.reactive.broadcaster import BroadcastHub, Notification
from lookout.reactive.server import NotificationServer


async def _wait_for(predicate: object, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():  # type: ignore[operator]
        if asyncio.get_running_loop().time() > deadline:
            msg = "condition not met in time"
            raise AssertionError(msg)
        await asyncio.sleep(0.01)


class TestNotificationServer:
    """Connection lifecycle and delivery over a real socket."""

    @pytest.mark.asyncio
    async def test_client_receives_broadcast(self) -> None:
        hub = BroadcastHub()
        server = NotificationServer(hub, host="127.0.0.1", port=0)
        await server.start()
        try:
            async with connect(f"ws://127.0.0.1:{server.port}") as ws:
                await _wait_for(lambda: hub.client_count == 1)
                sent = await hub.broadcast(Notification(file_path="app.js"))
                message = await asyncio.wait_for(ws.recv(), timeout=2)
            assert sent == 1
            assert json.loads(message)["filePath"] == "app.js"
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_disconnect_unregisters(self) -> None:
        hub = BroadcastHub()
        server = NotificationServer(hub, host="127.0.0.1", port=0)
        await server.start()
        try:
            async with connect(f"ws://127.0.0.1:{server.port}"):
                await _wait_for(lambda: hub.client_count == 1)
            await _wait_for(lambda: hub.client_count == 0)
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_port_in_use_raises_start_error(self) -> None:
        with socket.socket() as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            port = blocker.getsockname()[1]

            server = NotificationServer(BroadcastHub(), host="127.0.0.1", port=port)
            with pytest.raises(ServerStartError, match=str(port)):
                await server.start()
            assert not server.is_running

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        server = NotificationServer(BroadcastHub(), host="127.0.0.1", port=0)
        await server.start()
        assert server.is_running
        await server.stop()
        await server.stop()
        assert not server.is_running

    def test_port_before_start(self) -> None:
        server = NotificationServer(BroadcastHub(), port=9996)
        assert server.port == 9996
