"""Database models package"""

from fieldservice.models.file import File
from fieldservice.models.document_chunk import DocumentChunk
from fieldservice.models.search_analytics import SearchAnalytics
from fieldservice.models.saved_query import SavedQuery

__all__ = [
    "File",
    "DocumentChunk",
    "SearchAnalytics",
    "SavedQuery"
]
