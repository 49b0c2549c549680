import json
import logging
import uuid
from typing import Any, Dict, Optional, Set
from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


def chat_room_name(other_user_id: str) -> str:
    """Room used to scope an open conversation; never targeted for delivery."""
    return f"chat:{other_user_id}"


class Connection:
    """One live socket plus the identity it has established."""

    def __init__(self, websocket: WebSocket, authenticated_user_id: Optional[str] = None,
                 username: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        # Set from the bearer token on the handshake, None for anonymous sockets
        self.authenticated_user_id = authenticated_user_id
        self.username = username
        # Set once the socket has joined its own user-id room
        self.user_id: Optional[str] = None
        self.active_chat: Optional[str] = None
        self.rooms: Set[str] = set()

    @property
    def identified(self) -> bool:
        return self.user_id is not None

    async def send(self, event: str, data: Any = None):
        await self.websocket.send_text(json.dumps({"type": event, "data": data}, ensure_ascii=False, default=str))

    def __repr__(self):
        return f"<Connection id={self.id} user_id={self.user_id}>"


class ConnectionManager:
    def __init__(self):
        # Store live connections
        self.connections: Set[Connection] = set()
        # Store rooms: {room name: set of connections}
        self.rooms: Dict[str, Set[Connection]] = {}

    async def connect(self, websocket: WebSocket, authenticated_user_id: Optional[str] = None,
                      username: Optional[str] = None) -> Connection:
        """Accept a websocket and register it"""
        await websocket.accept()
        connection = Connection(websocket, authenticated_user_id, username)
        self.connections.add(connection)
        logger.info(f"Socket connected: {connection.id} (user={authenticated_user_id or 'anonymous'})")
        return connection

    def disconnect(self, connection: Connection):
        """Drop a connection and release every room it was in"""
        self.connections.discard(connection)
        for room in list(connection.rooms):
            self._remove_from_room(connection, room)
        connection.rooms.clear()
        logger.info(f"Socket disconnected: {connection.id} (user={connection.user_id})")

    def _remove_from_room(self, connection: Connection, room: str):
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(connection)
        if not members:
            del self.rooms[room]

    async def join(self, connection: Connection, room: str):
        """Join a room"""
        self.rooms.setdefault(room, set()).add(connection)
        connection.rooms.add(room)
        logger.debug(f"Connection {connection.id} joined room {room}")

    async def leave(self, connection: Connection, room: str):
        """Leave a room"""
        self._remove_from_room(connection, room)
        connection.rooms.discard(room)
        logger.debug(f"Connection {connection.id} left room {room}")

    async def emit(self, room: str, event: str, data: Any = None, skip: Optional[Connection] = None) -> int:
        """Send an event to every connection in a room; returns how many got it"""
        members = self.rooms.get(room)
        if not members:
            logger.debug(f"No live connections in room {room} for {event}")
            return 0

        sent = 0
        disconnected = []
        for connection in list(members):
            if connection is skip:
                continue
            try:
                await connection.send(event, data)
                sent += 1
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning(f"Dropping dead connection {connection.id} in room {room}: {e}")
                disconnected.append(connection)

        for connection in disconnected:
            self.disconnect(connection)
        return sent

    def room_size(self, room: str) -> int:
        return len(self.rooms.get(room, ()))

    def is_online(self, user_id: str) -> bool:
        return self.room_size(str(user_id)) > 0

# Global connection manager instance
manager = ConnectionManager()
