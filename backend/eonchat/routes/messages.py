from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import List, Optional
from uuid import UUID
import logging
from eonchat.db.session import get_db
from eonchat.models.message import Message
from eonchat.models.user import User
from eonchat.schemas.message import ActivityReport, MessageCreate, MessageResponse
from eonchat.schemas.user import UserSummary
from eonchat.core.auth import get_current_user
from eonchat.core.relay import relay
from eonchat.utils.activity import get_activity_report

logger = logging.getLogger(__name__)

router = APIRouter()


def conversation_filter(user_id, other_id):
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id)
    )


def relay_payload(message: Message, sender: User, receiver: User) -> dict:
    return {
        "id": str(message.id),
        "sender": sender.to_identity(),
        "receiver": receiver.to_identity(),
        "content": message.content,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat(),
    }


@router.post("/send", response_model=MessageResponse)
async def send_message(
    message: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Send a message to a friend
    """
    if not current_user.is_friend(message.receiver_id):
        # Distinguishable flag so the client can close the conversation right away
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Action Denied",
                "msg": "You are no longer friends with this user. Message blocked.",
                "is_unfriended": True
            }
        )

    receiver = db.query(User).filter(User.id == message.receiver_id).first()
    if not receiver:
        raise HTTPException(status_code=404, detail="User not found")

    db_message = Message(
        sender_id=current_user.id,
        receiver_id=receiver.id,
        content=message.content
    )
    db.add(db_message)
    db.commit()
    db.refresh(db_message)

    # Already saved; the push is only a low-latency notice
    await relay.route_message(None, relay_payload(db_message, current_user, receiver))

    response = MessageResponse.model_validate(db_message)
    response.sender = UserSummary.model_validate(current_user)
    return response


@router.get("/{other_user_id}", response_model=List[MessageResponse])
async def get_conversation(
    other_user_id: UUID,
    skip: int = 0,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Messages between the caller and a friend, oldest first
    """
    if not current_user.is_friend(other_user_id):
        return []

    query = db.query(Message).filter(
        conversation_filter(current_user.id, other_user_id)
    ).order_by(Message.created_at).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


@router.patch("/{other_user_id}/read")
async def mark_conversation_read(
    other_user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Mark every message received from a friend as read
    """
    updated = db.query(Message).filter(
        Message.sender_id == other_user_id,
        Message.receiver_id == current_user.id,
        Message.is_read == False  # noqa: E712
    ).update({Message.is_read: True}, synchronize_session=False)
    db.commit()
    return {"msg": "Marked as read", "updated": updated}


@router.get("/{other_user_id}/activity", response_model=Optional[ActivityReport])
async def get_conversation_activity(
    other_user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Busiest hour of the day in a conversation; null when there are no messages
    """
    if not current_user.is_friend(other_user_id):
        raise HTTPException(status_code=404, detail="Conversation not found")

    rows = db.query(Message.created_at).filter(
        conversation_filter(current_user.id, other_user_id)
    ).all()
    return get_activity_report(row[0] for row in rows)
