from sqlalchemy import Column, DateTime, ForeignKey, Boolean, Index, Text, Uuid
from eonchat.db.session import Base
from datetime import datetime
import uuid


class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False)
    receiver_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)  # Text keeps emoji intact
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Conversation lookups filter on the pair and sort by time
    __table_args__ = (
        Index("ix_messages_pair_created", "sender_id", "receiver_id", "created_at"),
    )
