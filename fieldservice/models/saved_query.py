"""Saved search query model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from datetime import datetime
import uuid
from fieldservice.database.base import Base


class SavedQuery(Base):
    """User-named reusable search"""

    __tablename__ = "saved_queries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    query = Column(Text, nullable=False)
    filters = Column(JSON, nullable=True)
    use_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_used_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<SavedQuery(id={self.id}, name={self.name}, uses={self.use_count})>"
