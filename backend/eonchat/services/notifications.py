"""Persistence of relay notifications for users who were offline."""
import asyncio
import logging
import uuid
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from eonchat.db.session import SessionLocal
from eonchat.models.notification import Notification, NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


def _as_uuid(value) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def find_notification(db: Session, user_id, source_id: str) -> Optional[Notification]:
    return db.query(Notification).filter(
        Notification.user_id == _as_uuid(user_id),
        Notification.source_id == source_id
    ).first()


def create_notification(db: Session, user_id, message: str, type_: str = "alert",
                        source_id: Optional[str] = None) -> Notification:
    """Insert a notification, or return the existing one for the same source."""
    if type_ not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type_}")
    if source_id is not None:
        existing = find_notification(db, user_id, source_id)
        if existing:
            return existing

    notification = Notification(
        user_id=_as_uuid(user_id),
        message=message,
        type=type_,
        source_id=source_id,
    )
    db.add(notification)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent save for the same source won the insert
        db.rollback()
        existing = find_notification(db, user_id, source_id) if source_id is not None else None
        if existing is None:
            raise
        return existing
    db.refresh(notification)
    return notification


def save_notification(user_id, message: str, type_: str = "alert",
                      source_id: Optional[str] = None) -> Optional[uuid.UUID]:
    """Write one notification in its own session (runs in a worker thread)."""
    db = SessionLocal()
    try:
        notification = create_notification(db, user_id, message, type_, source_id)
        logger.debug(f"Saved {type_} notification {notification.id} for {user_id}")
        return notification.id
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


async def persist_notification(user_id, message: str, type_: str = "alert",
                               source_id: Optional[str] = None) -> Optional[uuid.UUID]:
    return await asyncio.to_thread(save_notification, user_id, message, type_, source_id)
