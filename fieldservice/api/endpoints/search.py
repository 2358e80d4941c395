"""Search analytics and saved query endpoints"""

from enum import Enum
from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from fieldservice.api.deps import get_search_analytics
from fieldservice.exceptions import AuthorizationException, FieldServiceException, NotFoundException
from fieldservice.schemas.search import (
    ActionResponse,
    AnalyticsResponse,
    SavedQueryCreate,
    SavedQueryListResponse,
    SavedQueryResponse,
    SearchAnalyticsRecord,
    TrackClickRequest,
    TrackQueryRequest,
    TrackQueryResponse
)
from fieldservice.security.auth import CurrentUser, UserRole, get_current_user
from fieldservice.services.search_analytics import SearchAnalyticsService, to_saved_query_response

logger = logging.getLogger(__name__)

router = APIRouter()


class AnalyticsType(str, Enum):
    HISTORY = "history"
    SUMMARY = "summary"
    POPULAR = "popular"
    PERFORMANCE = "performance"


@router.post("/search/analytics", response_model=TrackQueryResponse)
async def track_search(
    request: TrackQueryRequest,
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Record a search executed by the client"""
    analytics_id = analytics.track_query(
        user_id=current_user.id,
        query=request.query,
        results_count=request.results_count,
        similarity_threshold=request.similarity_threshold,
        execution_time_ms=request.execution_time_ms
    )
    return TrackQueryResponse(success=True, analytics_id=analytics_id)


@router.get("/search/analytics", response_model=AnalyticsResponse)
async def get_search_analytics_data(
    type: AnalyticsType = AnalyticsType.HISTORY,
    limit: int = Query(20, ge=1, le=100),
    days_back: int = Query(30, ge=1, le=365),
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Search analytics

    - **history**: Caller's recent searches
    - **summary**: Caller's totals, top queries and daily trend
    - **popular**: Most frequent queries across users
    - **performance**: System-wide timings and click-through (admin/supervisor)
    """
    try:
        if type == AnalyticsType.HISTORY:
            data = [
                SearchAnalyticsRecord.model_validate(r).model_dump(mode="json")
                for r in analytics.get_history(current_user.id, limit=limit)
            ]
        elif type == AnalyticsType.SUMMARY:
            data = analytics.get_summary(current_user.id, days_back=days_back).model_dump(mode="json")
        elif type == AnalyticsType.POPULAR:
            data = [
                q.model_dump(mode="json")
                for q in analytics.get_popular_queries(limit=limit, days_back=days_back)
            ]
        else:
            if current_user.role not in (UserRole.ADMIN, UserRole.SUPERVISOR):
                raise AuthorizationException("Performance metrics require admin or supervisor role")
            data = analytics.get_performance_metrics(days_back=days_back).model_dump(mode="json")

        return AnalyticsResponse(success=True, type=type.value, data=data)
    except FieldServiceException:
        raise
    except Exception as e:
        logger.error(f"Error getting search analytics: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get search analytics")


@router.post("/search/analytics/{analytics_id}/click", response_model=ActionResponse)
async def track_click(
    analytics_id: str,
    request: TrackClickRequest,
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Record that a result of a tracked search was opened"""
    if not analytics.track_result_click(analytics_id, request.result_id, user_id=current_user.id):
        raise NotFoundException("Search record not found")
    return ActionResponse(success=True, message="Click tracked")


@router.get("/search/saved-queries", response_model=SavedQueryListResponse)
async def list_saved_queries(
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Caller's saved queries, most recently used first"""
    queries = [to_saved_query_response(q) for q in analytics.get_saved_queries(current_user.id)]
    return SavedQueryListResponse(success=True, queries=queries, count=len(queries))


@router.post("/search/saved-queries", response_model=SavedQueryResponse, status_code=201)
async def create_saved_query(
    request: SavedQueryCreate,
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Save a named search"""
    saved = analytics.save_query(
        user_id=current_user.id,
        name=request.name,
        query=request.query,
        filters=request.filters.model_dump(exclude_none=True)
    )
    return to_saved_query_response(saved)


@router.delete("/search/saved-queries/{query_id}", response_model=ActionResponse)
async def delete_saved_query(
    query_id: str,
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete one of the caller's saved queries"""
    if not analytics.delete_saved_query(query_id, current_user.id):
        raise NotFoundException("Saved query not found")
    return ActionResponse(success=True, message="Saved query deleted")


@router.post("/search/saved-queries/{query_id}/use", response_model=ActionResponse)
async def use_saved_query(
    query_id: str,
    analytics: SearchAnalyticsService = Depends(get_search_analytics),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Count a reuse of a saved query"""
    if not analytics.update_usage(query_id, user_id=current_user.id):
        raise NotFoundException("Saved query not found")
    return ActionResponse(success=True, message="Usage updated")
