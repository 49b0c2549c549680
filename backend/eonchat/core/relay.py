"""
Real-time fan-out of chat events.

Every identified socket sits in a room named after its user id. The relay
routes new messages, friend requests, acceptances and removals to the
recipient's room and, for the offline case, appends a Notification record in
the background. The emit always happens first; the notification save is
fire-and-forget and its failures are only logged. The REST layer already
holds the authoritative copy of every message and request, so the relay
neither deduplicates deliveries nor re-checks friendships. Notification saves
carry the id of the message or request that caused them, so the same event
relayed twice still leaves a single notification.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Set

from pydantic import ValidationError

from eonchat.core.websocket import chat_room_name, manager
from eonchat.schemas.events import (
    PLACEHOLDER_USERNAME,
    Identity,
    RelayFriendRequest,
    RelayMessage,
    extract_id,
)
from eonchat.services.notifications import persist_notification

logger = logging.getLogger(__name__)

# (user_id, message, type, source_id); repeated saves for one source are ignored
NotificationSink = Callable[[str, str, str, Optional[str]], Awaitable[Any]]

REMOVAL_NOTICE = "Someone removed you from their friends list"


class RoomRouter(Protocol):
    async def join(self, connection: Any, room: str) -> None: ...

    async def leave(self, connection: Any, room: str) -> None: ...

    async def emit(self, room: str, event: str, data: Any = None, skip: Any = None) -> int: ...


class FanOutRelay:
    """Routes cross-user events to per-user rooms."""

    def __init__(self, router: RoomRouter, notification_sink: Optional[NotificationSink] = None):
        self.router = router
        self.notification_sink = notification_sink
        self._pending: Set[asyncio.Task] = set()

    # -- session -----------------------------------------------------------

    async def identify(self, connection: Any, claimed_user_id: Any) -> Optional[str]:
        """Join ``connection`` to its own user-id room.

        An authenticated socket always joins the room of its token's user; a
        different claimed id is ignored. Anonymous sockets are trusted with
        whatever id they claim.
        """
        claimed = extract_id(claimed_user_id)
        authenticated = getattr(connection, "authenticated_user_id", None)

        if authenticated and claimed and claimed != authenticated:
            logger.warning(
                f"Connection {getattr(connection, 'id', '?')} claimed user {claimed} "
                f"but is authenticated as {authenticated}; using the authenticated id"
            )
        user_id = authenticated or claimed
        if not user_id:
            logger.warning("identify received without a user id; ignored")
            return None

        previous = getattr(connection, "user_id", None)
        if previous and previous != user_id:
            # Re-identified as someone else: stop receiving the old user's events
            await self.router.leave(connection, previous)
            if not authenticated:
                connection.username = None
        if isinstance(claimed_user_id, Mapping) and not getattr(connection, "username", None):
            connection.username = claimed_user_id.get("username")
        connection.user_id = user_id
        await self.router.join(connection, user_id)
        logger.info(f"User {connection.username or user_id} joined room {user_id}")
        return user_id

    async def join_chat(self, connection: Any, other_user_id: Any) -> Optional[str]:
        """Scope the connection to one open conversation (UI only)."""
        other_id = extract_id(other_user_id)
        if not other_id:
            logger.warning("join_chat received without a room; ignored")
            return None
        previous = getattr(connection, "active_chat", None)
        if previous and previous != other_id:
            await self.router.leave(connection, chat_room_name(previous))
        connection.active_chat = other_id
        room = chat_room_name(other_id)
        await self.router.join(connection, room)
        return room

    # -- routing -----------------------------------------------------------

    async def route_message(self, sender_conn: Any, payload: Any) -> int:
        if not isinstance(payload, Mapping):
            logger.warning("Dropping message event with a non-object payload")
            return 0

        receiver_id = extract_id(payload.get("receiver")) or extract_id(payload.get("receiver_id"))
        if not receiver_id:
            logger.warning("Dropping message event without a receiver")
            return 0

        data = dict(payload)
        data["receiver"] = payload.get("receiver") or receiver_id
        sender = self._resolve_sender(sender_conn, data.get("sender"))
        if sender is None:
            logger.warning(f"Dropping message to {receiver_id}: no sender")
            return 0
        data["sender"] = sender

        try:
            message = RelayMessage.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed message to {receiver_id}: {e}")
            return 0

        delivered = await self._emit(receiver_id, "message_received", message.model_dump(mode="json"), sender_conn)
        self._persist_later(receiver_id, f"New message from {message.sender.username}", "message", message.id)
        return delivered

    async def route_friend_request(self, sender_conn: Any, request_payload: Any, receiver_id: Any) -> int:
        receiver_id = extract_id(receiver_id)
        if not receiver_id:
            logger.warning("Dropping friend request without a receiver")
            return 0
        if not isinstance(request_payload, Mapping):
            logger.warning(f"Dropping friend request to {receiver_id}: no request record")
            return 0

        data = dict(request_payload)
        sender = self._resolve_sender(sender_conn, data.get("sender"))
        if sender is None:
            logger.warning(f"Dropping friend request to {receiver_id}: no sender")
            return 0
        data["sender"] = sender

        try:
            request = RelayFriendRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed friend request to {receiver_id}: {e}")
            return 0

        delivered = await self._emit(receiver_id, "friend_request_received", request.model_dump(mode="json"), sender_conn)
        self._persist_later(receiver_id, f"New friend request from {request.sender.username}", "request", request.id)
        return delivered

    async def route_friend_removal(self, sender_conn: Any, removed_user_id: Any, acting_user_id: Any) -> int:
        removed_id = extract_id(removed_user_id)
        acting = self._session_identity(sender_conn)
        acting_id = acting.id if acting else extract_id(acting_user_id) or getattr(sender_conn, "user_id", None)
        if not removed_id or not acting_id:
            logger.warning("Dropping friend removal without both user ids")
            return 0

        delivered = await self._emit(removed_id, "friend_removed", {"user_id": acting_id}, sender_conn)
        self._persist_later(removed_id, REMOVAL_NOTICE, "alert")
        return delivered

    async def route_friend_acceptance(self, sender_conn: Any, original_sender_id: Any, accepting_user: Any) -> int:
        target_id = extract_id(original_sender_id)
        if not target_id:
            logger.warning("Dropping friend acceptance without the requester id")
            return 0

        identity = self._resolve_sender(sender_conn, accepting_user)
        if identity is None:
            logger.warning(f"Dropping friend acceptance for {target_id}: no accepting user")
            return 0
        try:
            identity = Identity.model_validate(identity)
        except ValidationError as e:
            logger.warning(f"Dropping malformed friend acceptance for {target_id}: {e}")
            return 0

        return await self._emit(target_id, "friend_request_accepted", identity.model_dump(), sender_conn)

    # -- background persistence -------------------------------------------

    async def drain(self):
        """Wait for every outstanding notification save."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _persist_later(self, user_id: str, message: str, type_: str,
                       source_id: Optional[str] = None) -> Optional[asyncio.Task]:
        if self.notification_sink is None:
            return None
        task = asyncio.get_running_loop().create_task(self._persist(user_id, message, type_, source_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _persist(self, user_id: str, message: str, type_: str, source_id: Optional[str]):
        try:
            await self.notification_sink(user_id, message, type_, source_id)
        except Exception:
            logger.exception(f"Failed to save {type_} notification for {user_id}")

    # -- helpers -----------------------------------------------------------

    async def _emit(self, room: str, event: str, data: Any, skip: Any) -> int:
        try:
            return await self.router.emit(room, event, data, skip=skip)
        except Exception:
            logger.exception(f"Failed to emit {event} to room {room}")
            return 0

    @staticmethod
    def _session_identity(connection: Any) -> Optional[Identity]:
        user_id = getattr(connection, "authenticated_user_id", None)
        if not user_id:
            return None
        return Identity(id=user_id, username=getattr(connection, "username", None) or PLACEHOLDER_USERNAME)

    def _resolve_sender(self, connection: Any, claimed: Any) -> Any:
        """Sender as seen by the recipient: the authenticated session wins over the payload."""
        session = self._session_identity(connection)
        if session is not None:
            if claimed is not None and extract_id(claimed) != session.id:
                logger.warning(f"Payload sender {extract_id(claimed)} does not match session user {session.id}")
                return session
            if isinstance(claimed, Mapping) and (claimed.get("username") or claimed.get("display_name")):
                return claimed
            return session
        if claimed is not None:
            return claimed
        user_id = getattr(connection, "user_id", None)
        if user_id:
            return {"id": user_id, "username": getattr(connection, "username", None)}
        return None


relay = FanOutRelay(manager, persist_notification)
