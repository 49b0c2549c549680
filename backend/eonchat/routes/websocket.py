from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from typing import Any, Mapping, Optional
import json
import logging
from eonchat.db.session import SessionLocal
from eonchat.core.auth import get_user_from_token
from eonchat.core.relay import relay
from eonchat.core.websocket import Connection, manager

logger = logging.getLogger(__name__)

router = APIRouter()


def authenticate_socket(token: Optional[str]):
    """Return (user_id, username) for a valid token, (None, None) otherwise"""
    if not token:
        return None, None
    db = SessionLocal()
    try:
        user = get_user_from_token(db, token)
        if not user:
            return None, None
        return str(user.id), user.username
    finally:
        db.close()


def event_payload(message_data: Mapping) -> Any:
    """Clients either nest the record under "data" or send it inline"""
    if isinstance(message_data.get("data"), Mapping):
        return message_data["data"]
    return {k: v for k, v in message_data.items() if k != "type"}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: Optional[str] = Query(None)):
    """WebSocket endpoint for real-time fan-out"""
    user_id, username = authenticate_socket(token)
    if token and not user_id:
        logger.warning("WebSocket token rejected; continuing as anonymous socket")

    connection = await manager.connect(websocket, user_id, username)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                await connection.send("error", {"message": "Invalid JSON"})
                continue
            if not isinstance(message_data, dict):
                await connection.send("error", {"message": "Expected a JSON object"})
                continue

            await handle_event(connection, message_data)

    except WebSocketDisconnect:
        manager.disconnect(connection)
    except Exception:
        logger.exception(f"WebSocket error on {connection.id}")
        manager.disconnect(connection)


async def handle_event(connection: Connection, message_data: dict):
    """Dispatch one inbound frame to the relay"""
    message_type = message_data.get("type")
    payload = event_payload(message_data)

    if message_type == "identify":
        claimed = payload.get("user") or payload.get("user_id") or payload.get("userId")
        user_id = await relay.identify(connection, claimed)
        if user_id:
            await connection.send("connected", {"user_id": user_id})
        else:
            await connection.send("error", {"message": "identify requires a user id"})

    elif message_type == "join_chat":
        await relay.join_chat(connection, payload.get("room") or payload.get("user_id"))

    elif message_type == "new_message":
        await relay.route_message(connection, payload)

    elif message_type == "send_friend_request":
        request = payload.get("request") or payload
        receiver_id = payload.get("receiver_id") or payload.get("receiverId")
        await relay.route_friend_request(connection, request, receiver_id)

    elif message_type == "accept_friend_request":
        await relay.route_friend_acceptance(
            connection,
            payload.get("sender_id") or payload.get("senderId"),
            payload.get("user")
        )

    elif message_type == "remove_friend":
        await relay.route_friend_removal(
            connection,
            payload.get("friend_id") or payload.get("friendId"),
            payload.get("user_id") or payload.get("userId")
        )

    else:
        logger.debug(f"Ignoring unknown event {message_type!r} on {connection.id}")
