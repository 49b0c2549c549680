from sqlalchemy import Column, String, DateTime, Boolean, Enum, ForeignKey, UniqueConstraint, Uuid
from eonchat.db.session import Base
from datetime import datetime
import uuid

NOTIFICATION_TYPES = ("message", "request", "alert")

class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.id'), nullable=False)
    message = Column(String, nullable=False)
    type = Column(Enum(*NOTIFICATION_TYPES, name="notification_type"), nullable=False, default="alert")
    # Id of the message or request that caused it; one notification per source
    source_id = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "source_id", name="uq_notifications_user_source"),
    )
