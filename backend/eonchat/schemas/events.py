"""Payload shapes carried over the real-time channel.

Clients send sender/receiver either as bare ids or as populated user objects.
Everything is coerced here into ``{"id", "username"}`` identities so nothing
downstream has to branch on the shape.
"""
from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PLACEHOLDER_USERNAME = "Unknown"


def extract_id(value: Any) -> Optional[str]:
    """Pull an id out of a bare id or an object carrying ``id``/``_id``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, UUID, int)):
        text = str(value).strip()
        return text or None
    if isinstance(value, Mapping):
        for key in ("id", "_id"):
            found = extract_id(value.get(key))
            if found:
                return found
        return None
    found = getattr(value, "id", None)
    return extract_id(found) if found is not None else None


def coerce_timestamp(value: Any) -> datetime:
    """Parse an incoming timestamp, stamping now when missing or unreadable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # JavaScript clients send epoch milliseconds
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.utcfromtimestamp(seconds)
        except (OverflowError, OSError, ValueError):
            return datetime.utcnow()
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.utcnow()


class Identity(BaseModel):
    id: str
    username: str = PLACEHOLDER_USERNAME

    @model_validator(mode="before")
    @classmethod
    def from_any_shape(cls, value: Any) -> Any:
        if isinstance(value, Identity):
            return value
        if isinstance(value, Mapping):
            data = {"id": extract_id(value)}
            username = value.get("username") or value.get("display_name")
            if username:
                data["username"] = str(username)
            return data
        user_id = extract_id(value)
        if user_id is not None:
            return {"id": user_id}
        return value


class TimestampedEvent(BaseModel):
    # Fields the relay does not know about travel through untouched
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_keys(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            value = dict(value)
            if value.get("id") is None and value.get("_id") is not None:
                value["id"] = value.pop("_id")
            if value.get("created_at") is None:
                legacy = value.pop("timestamp", None) or value.pop("createdAt", None)
                value["created_at"] = legacy
        return value

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return extract_id(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def stamp_created_at(cls, v):
        return coerce_timestamp(v)


class RelayMessage(TimestampedEvent):
    sender: Identity
    receiver: Identity
    content: Optional[str] = None
    is_read: bool = False


class RelayFriendRequest(TimestampedEvent):
    sender: Identity
    receiver: Optional[Identity] = None
    status: str = "pending"
