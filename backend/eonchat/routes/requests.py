from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session
from typing import List
import logging
from eonchat.db.session import get_db
from eonchat.models.user import User
from eonchat.models.friend_request import FriendRequest
from eonchat.schemas.friend import (
    FriendRequestAccept,
    FriendRequestAccepted,
    FriendRequestCreate,
    FriendRequestResponse,
)
from eonchat.schemas.user import UserSummary
from eonchat.core.auth import get_current_user
from eonchat.core.relay import relay

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_request(request: FriendRequest, sender: User) -> dict:
    return {
        "id": request.id,
        "sender_id": request.sender_id,
        "receiver_id": request.receiver_id,
        "status": request.status,
        "created_at": request.created_at,
        "sender": UserSummary.model_validate(sender) if sender else None,
    }


@router.post("/send", response_model=FriendRequestResponse)
async def send_friend_request(
    payload: FriendRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Send a friend request
    """
    if payload.receiver_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot send a request to yourself")

    receiver = db.query(User).filter(User.id == payload.receiver_id).first()
    if not receiver:
        raise HTTPException(status_code=404, detail="User not found")

    existing_request = db.query(FriendRequest).filter(
        FriendRequest.sender_id == current_user.id,
        FriendRequest.receiver_id == payload.receiver_id,
        FriendRequest.status == "pending"
    ).first()
    if existing_request:
        raise HTTPException(status_code=400, detail="Request already sent")

    if current_user.is_friend(payload.receiver_id):
        raise HTTPException(status_code=400, detail="Already friends")

    db_request = FriendRequest(
        sender_id=current_user.id,
        receiver_id=payload.receiver_id,
        status="pending"
    )
    db.add(db_request)
    db.commit()
    db.refresh(db_request)

    response = serialize_request(db_request, current_user)
    await relay.route_friend_request(None, FriendRequestResponse(**response).model_dump(mode="json"), receiver.id)
    return response


@router.get("/pending", response_model=List[FriendRequestResponse])
async def get_pending_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Pending requests received by the caller, oldest first
    """
    requests = db.query(FriendRequest).filter(
        FriendRequest.receiver_id == current_user.id,
        FriendRequest.status == "pending"
    ).order_by(FriendRequest.created_at).all()

    sender_ids = {req.sender_id for req in requests}
    senders = {user.id: user for user in db.query(User).filter(User.id.in_(sender_ids)).all()} if sender_ids else {}
    return [serialize_request(req, senders.get(req.sender_id)) for req in requests]


@router.post("/accept", response_model=FriendRequestAccepted)
async def accept_friend_request(
    payload: FriendRequestAccept,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Accept a pending request and add the friendship on both sides
    """
    request = db.query(FriendRequest).filter(FriendRequest.id == payload.request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")

    if request.receiver_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    if request.status != "pending":
        raise HTTPException(status_code=400, detail="Request already accepted")

    sender = db.query(User).filter(User.id == request.sender_id).first()
    if not sender:
        raise HTTPException(status_code=404, detail="User not found")

    request.status = "accepted"
    current_user.add_friend(sender.id)
    sender.add_friend(current_user.id)
    db.commit()
    logger.info(f"User {current_user.id} accepted request {request.id} from {sender.id}")

    await relay.route_friend_acceptance(None, sender.id, current_user.to_identity())
    return {"msg": "Friend Request Accepted", "new_friend": UserSummary.model_validate(sender)}
