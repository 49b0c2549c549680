from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from typing import List
import logging
import uuid
from eonchat.db.session import get_db
from eonchat.models.user import User
from eonchat.models.message import Message
from eonchat.schemas.user import FriendAction, NetworkNode, RecommendationResponse, UserSummary
from eonchat.core.auth import get_current_user
from eonchat.core.friend_graph import build_friend_graph
from eonchat.core.relay import relay

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_LIMIT = 10


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _uuid_list(ids) -> List[uuid.UUID]:
    result = []
    for value in ids or []:
        try:
            result.append(uuid.UUID(str(value)))
        except ValueError:
            logger.warning(f"Ignoring malformed friend id {value!r}")
    return result


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    query: str = Query(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Case-insensitive username prefix search, excluding the caller
    """
    query = query.strip()
    if not query:
        return []

    return db.query(User).filter(
        User.id != current_user.id,
        User.username.ilike(f"{_escape_like(query)}%", escape="\\")
    ).order_by(User.username).limit(SEARCH_LIMIT).all()


@router.get("/friends", response_model=List[UserSummary])
async def get_friends(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get the caller's friend list
    """
    friend_ids = _uuid_list(current_user.friends)
    if not friend_ids:
        return []
    friends = {user.id: user for user in db.query(User).filter(User.id.in_(friend_ids)).all()}
    # Keep the order of the adjacency list
    return [friends[fid] for fid in friend_ids if fid in friends]


@router.post("/remove-friend")
async def remove_friend(
    action: FriendAction,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Remove a friend on both sides and delete every message between the two users
    """
    friend = db.query(User).filter(User.id == action.friend_id).first()
    if not friend:
        raise HTTPException(status_code=404, detail="User not found")

    # Either side listing the other counts as a friendship
    if not (current_user.is_friend(friend.id) or friend.is_friend(current_user.id)):
        raise HTTPException(status_code=400, detail="You are not friends with this user")

    current_user.remove_friend(friend.id)
    friend.remove_friend(current_user.id)

    deleted = db.query(Message).filter(
        or_(
            and_(Message.sender_id == current_user.id, Message.receiver_id == action.friend_id),
            and_(Message.sender_id == action.friend_id, Message.receiver_id == current_user.id)
        )
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"User {current_user.id} removed friend {action.friend_id}; {deleted} messages deleted")

    await relay.route_friend_removal(None, action.friend_id, current_user.id)
    return {"msg": "Friend and chats removed successfully", "deleted_messages": deleted}


@router.get("/network", response_model=List[NetworkNode])
async def get_network(db: Session = Depends(get_db)):
    """
    Every user with their friend list, for building the friendship graph
    """
    return db.query(User).order_by(User.created_at).all()


@router.get("/recommendations", response_model=List[RecommendationResponse])
async def get_recommendations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    People you may know: friends of friends ranked by mutual friend count
    """
    users = db.query(User).order_by(User.created_at).all()
    graph = build_friend_graph(users)
    return [r.to_dict() for r in graph.get_recommendations(current_user.id)]
