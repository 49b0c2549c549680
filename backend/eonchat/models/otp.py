from sqlalchemy import Column, String, DateTime, Uuid
from eonchat.db.session import Base
from datetime import datetime
import uuid

class Otp(Base):
    __tablename__ = "otps"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, index=True)
    otp = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
