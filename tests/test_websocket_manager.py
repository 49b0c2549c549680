"""Tests for the in-process room registry."""

from __future__ import annotations

import json

import pytest
from fastapi import WebSocketDisconnect

from eonchat.core.websocket import ConnectionManager, chat_room_name


class FakeWebSocket:
    def __init__(self, broken: bool = False):
        self.accepted = False
        self.broken = broken
        self.sent: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.broken:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(json.loads(text))


@pytest.fixture
def registry() -> ConnectionManager:
    return ConnectionManager()


class TestConnectionManager:
    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, registry):
        ws = FakeWebSocket()

        conn = await registry.connect(ws, "alice", "Alice")

        assert ws.accepted
        assert conn in registry.connections
        assert conn.authenticated_user_id == "alice"
        assert not conn.identified

    @pytest.mark.asyncio
    async def test_emit_reaches_every_member_but_skip(self, registry):
        a1 = await registry.connect(FakeWebSocket())
        a2 = await registry.connect(FakeWebSocket())
        await registry.join(a1, "alice")
        await registry.join(a2, "alice")

        sent = await registry.emit("alice", "message_received", {"content": "hé 👋"}, skip=a2)

        assert sent == 1
        assert a1.websocket.sent == [{"type": "message_received", "data": {"content": "hé 👋"}}]
        assert a2.websocket.sent == []

    @pytest.mark.asyncio
    async def test_emit_to_empty_room(self, registry):
        assert await registry.emit("nobody", "friend_removed", {"user_id": "x"}) == 0

    @pytest.mark.asyncio
    async def test_dead_socket_is_dropped(self, registry):
        dead = await registry.connect(FakeWebSocket(broken=True))
        live = await registry.connect(FakeWebSocket())
        await registry.join(dead, "bob")
        await registry.join(live, "bob")

        assert await registry.emit("bob", "message_received", {}) == 1
        assert registry.room_size("bob") == 1
        assert dead not in registry.connections

    @pytest.mark.asyncio
    async def test_disconnect_releases_rooms(self, registry):
        conn = await registry.connect(FakeWebSocket())
        await registry.join(conn, "alice")
        await registry.join(conn, chat_room_name("bob"))

        registry.disconnect(conn)

        assert registry.rooms == {}
        assert not registry.is_online("alice")

    @pytest.mark.asyncio
    async def test_leave(self, registry):
        conn = await registry.connect(FakeWebSocket())
        await registry.join(conn, "chat:bob")
        await registry.leave(conn, "chat:bob")

        assert registry.room_size("chat:bob") == 0
        assert conn.rooms == set()


def test_chat_room_never_matches_a_user_room():
    assert chat_room_name("alice") == "chat:alice"
    assert chat_room_name("alice") != "alice"
