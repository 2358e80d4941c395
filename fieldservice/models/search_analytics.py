"""Search analytics model"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, JSON, Index
from datetime import datetime
import uuid
from fieldservice.database.base import Base


class SearchAnalytics(Base):
    """One row per executed search; only clicked_result_ids changes afterwards"""

    __tablename__ = "search_analytics"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    query = Column(Text, nullable=False)
    results_count = Column(Integer, nullable=False, default=0)
    similarity_threshold = Column(Float, nullable=False)
    execution_time_ms = Column(Integer, nullable=False, default=0)
    clicked_result_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_search_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        return f"<SearchAnalytics(id={self.id}, user_id={self.user_id}, results={self.results_count})>"
