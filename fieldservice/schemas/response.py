"""Generic response schemas"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ErrorResponse(BaseModel):
    """Error response schema"""
    error: str
    detail: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class HealthResponse(BaseModel):
    """Health check response schema"""
    status: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    dependencies: dict
    version: Optional[str] = None
