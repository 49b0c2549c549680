from sqlalchemy import Column, String, DateTime, JSON, Uuid
from datetime import datetime
import uuid
from eonchat.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=True)
    password_hash = Column(String, nullable=False)
    # Adjacency list of friend ids (as strings); mirrored on both users
    friends = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    def is_friend(self, other_id) -> bool:
        return str(other_id) in (self.friends or [])

    def add_friend(self, other_id):
        # Reassign so SQLAlchemy notices the JSON change
        if not self.is_friend(other_id):
            self.friends = [*(self.friends or []), str(other_id)]

    def remove_friend(self, other_id):
        self.friends = [fid for fid in (self.friends or []) if fid != str(other_id)]

    def to_identity(self) -> dict:
        return {"id": str(self.id), "username": self.username}
