from sqlalchemy import Column, DateTime, Enum, ForeignKey, Uuid
from eonchat.db.session import Base
from datetime import datetime
import uuid

class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    status = Column(Enum("pending", "accepted", name="friend_request_status"), default="pending")
    created_at = Column(DateTime, default=datetime.utcnow)
