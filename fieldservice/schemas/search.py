"""Search, analytics and saved query schemas"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List
from datetime import datetime

from fieldservice.config import settings
from fieldservice.schemas.document import ChunkMetadata, FileSummary


class SearchFilters(BaseModel):
    """Filters stored with a saved query"""
    file_ids: Optional[List[str]] = None
    similarity_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_results: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="ignore")


class SearchRequest(BaseModel):
    """Semantic search request"""
    query: str
    match_threshold: float = Field(default=settings.RAG_MATCH_THRESHOLD, ge=0.0, le=1.0)
    match_count: int = Field(default=settings.RAG_MATCH_COUNT, ge=1, le=100)
    file_ids: Optional[List[str]] = None


class SearchResultItem(BaseModel):
    """One ranked chunk returned by a search"""
    id: str
    file_id: str
    content: str
    chunk_index: int
    metadata: Optional[ChunkMetadata] = None
    similarity: float
    file: Optional[FileSummary] = None


class SearchResponse(BaseModel):
    """Semantic search response"""
    success: bool = True
    query: str
    results: List[SearchResultItem]
    count: int
    execution_time_ms: int
    analytics_id: Optional[str] = None


class TrackQueryRequest(BaseModel):
    """Record a search executed by the client"""
    query: str
    results_count: int = Field(default=0, ge=0)
    similarity_threshold: float = Field(default=settings.RAG_MATCH_THRESHOLD, ge=0.0, le=1.0)
    execution_time_ms: int = Field(default=0, ge=0)


class TrackQueryResponse(BaseModel):
    success: bool
    analytics_id: str


class TrackClickRequest(BaseModel):
    result_id: str = Field(min_length=1)


class AnalyticsResponse(BaseModel):
    """GET /search/analytics"""
    success: bool = True
    type: str
    data: Any


class SearchAnalyticsRecord(BaseModel):
    """Search history entry"""
    id: str
    user_id: str
    query: str
    results_count: int
    similarity_threshold: float
    execution_time_ms: int
    clicked_result_ids: List[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QueryCount(BaseModel):
    query: str
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class SearchAnalyticsSummary(BaseModel):
    """Aggregates over a user's recent searches"""
    total_searches: int = 0
    avg_results_per_search: float = 0.0
    avg_execution_time: float = 0.0
    top_queries: List[QueryCount] = Field(default_factory=list)
    search_trends: List[DailyCount] = Field(default_factory=list)


class PopularQuery(BaseModel):
    query: str
    count: int
    avg_results: float


class SlowQuery(BaseModel):
    query: str
    avg_time: float
    count: int


class ResultClicks(BaseModel):
    result_id: str
    click_count: int


class SearchPerformanceMetrics(BaseModel):
    """System-wide search performance"""
    avg_execution_time: float = 0.0
    slow_queries: List[SlowQuery] = Field(default_factory=list)
    popular_results: List[ResultClicks] = Field(default_factory=list)
    query_success_rate: float = 0.0


class SavedQueryCreate(BaseModel):
    """Create saved query schema"""
    name: str
    query: str
    filters: SearchFilters = Field(default_factory=SearchFilters)


class SavedQueryResponse(BaseModel):
    """Saved query response"""
    id: str
    user_id: str
    name: str
    query: str
    filters: SearchFilters
    use_count: int
    created_at: datetime
    last_used_at: datetime


class SavedQueryListResponse(BaseModel):
    success: bool = True
    queries: List[SavedQueryResponse]
    count: int


class ActionResponse(BaseModel):
    """Generic success/message response"""
    success: bool
    message: str
