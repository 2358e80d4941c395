"""Uploaded file model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from fieldservice.database.base import Base


class File(Base):
    """Uploaded file that can be processed into searchable chunks"""

    __tablename__ = "files"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    filename = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=True)  # Relative to UPLOAD_DIR
    mime_type = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)  # Size in bytes
    uploaded_by = Column(String(64), nullable=True, index=True)
    is_processed = Column(Boolean, default=False, nullable=False, index=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Chunks go with the file. The vector index has no cascade of its own, so
    # FileService/DocumentStore remove the matching points explicitly.
    chunks = relationship(
        "DocumentChunk",
        back_populates="file",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_file_processed_created', 'is_processed', 'created_at'),
    )

    def __repr__(self):
        return f"<File(id={self.id}, filename={self.filename}, processed={self.is_processed})>"
