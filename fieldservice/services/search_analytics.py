"""Search analytics and saved query service"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldservice.exceptions import DatabaseException, ValidationException
from fieldservice.models.saved_query import SavedQuery
from fieldservice.models.search_analytics import SearchAnalytics
from fieldservice.schemas.search import (
    DailyCount,
    PopularQuery,
    QueryCount,
    ResultClicks,
    SavedQueryResponse,
    SearchAnalyticsSummary,
    SearchFilters,
    SearchPerformanceMetrics,
    SlowQuery
)

logger = logging.getLogger(__name__)


def to_saved_query_response(saved: SavedQuery) -> SavedQueryResponse:
    return SavedQueryResponse(
        id=saved.id,
        user_id=saved.user_id,
        name=saved.name,
        query=saved.query,
        filters=SearchFilters.model_validate(saved.filters or {}),
        use_count=saved.use_count,
        created_at=saved.created_at,
        last_used_at=saved.last_used_at
    )


class SearchAnalyticsService:
    """Records searches and manages saved queries"""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {str(e)}", exc_info=True)
            raise DatabaseException(f"Failed to {action}") from e

    def track_query(
        self,
        user_id: str,
        query: str,
        results_count: int,
        similarity_threshold: float,
        execution_time_ms: int
    ) -> str:
        """
        Record an executed search

        Returns:
            Analytics record id
        """
        if not query or not query.strip():
            raise ValidationException("Search query is required")
        if results_count is None or results_count < 0:
            raise ValidationException(f"results_count must not be negative, got {results_count}")
        if similarity_threshold is None or not 0 <= similarity_threshold <= 1:
            raise ValidationException(f"similarity_threshold must be between 0 and 1, got {similarity_threshold}")

        record = SearchAnalytics(
            user_id=user_id,
            query=query.strip(),
            results_count=results_count,
            similarity_threshold=similarity_threshold,
            execution_time_ms=execution_time_ms,
            clicked_result_ids=[]
        )
        self.db.add(record)
        self._commit("track search query")

        logger.debug(f"Tracked search {record.id} for user {user_id}")
        return record.id

    def track_result_click(self, analytics_id: str, result_id: str, user_id: Optional[str] = None) -> bool:
        """
        Append a clicked result to a search record

        Returns:
            False when the record does not exist (or belongs to another user)
        """
        query = self.db.query(SearchAnalytics).filter(SearchAnalytics.id == analytics_id)
        if user_id is not None:
            query = query.filter(SearchAnalytics.user_id == user_id)
        record = query.with_for_update().first()

        if not record:
            self.db.rollback()
            return False

        clicked = list(record.clicked_result_ids or [])
        if result_id in clicked:
            self.db.rollback()
            return True

        # Reassign so the JSON column is flagged dirty
        record.clicked_result_ids = clicked + [result_id]
        self._commit("track result click")
        return True

    def get_history(self, user_id: str, limit: int = 20) -> List[SearchAnalytics]:
        """User's searches, most recent first"""
        return self.db.query(SearchAnalytics).filter(
            SearchAnalytics.user_id == user_id
        ).order_by(desc(SearchAnalytics.created_at)).limit(limit).all()

    def _since(self, days_back: int) -> datetime:
        return datetime.utcnow() - timedelta(days=days_back)

    def get_summary(self, user_id: str, days_back: int = 30) -> SearchAnalyticsSummary:
        """Aggregates over a user's searches in the last days_back days"""
        since = self._since(days_back)
        base = self.db.query(SearchAnalytics).filter(
            SearchAnalytics.user_id == user_id,
            SearchAnalytics.created_at >= since
        )

        total, avg_results, avg_time = base.with_entities(
            func.count(SearchAnalytics.id),
            func.avg(SearchAnalytics.results_count),
            func.avg(SearchAnalytics.execution_time_ms)
        ).one()

        if not total:
            return SearchAnalyticsSummary()

        query_count = func.count(SearchAnalytics.id).label("query_count")
        top_queries = base.with_entities(
            SearchAnalytics.query,
            query_count
        ).group_by(SearchAnalytics.query).order_by(desc(query_count)).limit(5).all()

        per_day = Counter(
            created_at.strftime("%Y-%m-%d")
            for (created_at,) in base.with_entities(SearchAnalytics.created_at)
        )

        return SearchAnalyticsSummary(
            total_searches=total,
            avg_results_per_search=round(float(avg_results or 0), 2),
            avg_execution_time=round(float(avg_time or 0), 2),
            top_queries=[QueryCount(query=q, count=c) for q, c in top_queries],
            search_trends=[DailyCount(date=d, count=per_day[d]) for d in sorted(per_day)]
        )

    def get_popular_queries(self, limit: int = 10, days_back: int = 30) -> List[PopularQuery]:
        """Most frequent queries across all users"""
        query_count = func.count(SearchAnalytics.id).label("query_count")
        rows = self.db.query(
            SearchAnalytics.query,
            query_count,
            func.avg(SearchAnalytics.results_count).label("avg_results")
        ).filter(
            SearchAnalytics.created_at >= self._since(days_back)
        ).group_by(SearchAnalytics.query).order_by(desc(query_count)).limit(limit).all()

        return [
            PopularQuery(query=q, count=c, avg_results=round(float(avg or 0), 2))
            for q, c, avg in rows
        ]

    def get_performance_metrics(self, days_back: int = 30) -> SearchPerformanceMetrics:
        """Execution times, slow queries, clicked results and success rate"""
        since = self._since(days_back)
        base = self.db.query(SearchAnalytics).filter(SearchAnalytics.created_at >= since)

        total, avg_time = base.with_entities(
            func.count(SearchAnalytics.id),
            func.avg(SearchAnalytics.execution_time_ms)
        ).one()
        if not total:
            return SearchPerformanceMetrics()

        with_results = base.filter(SearchAnalytics.results_count > 0).count()

        avg_query_time = func.avg(SearchAnalytics.execution_time_ms).label("avg_time")
        slow = base.with_entities(
            SearchAnalytics.query,
            avg_query_time,
            func.count(SearchAnalytics.id)
        ).group_by(SearchAnalytics.query).order_by(desc(avg_query_time)).limit(10).all()

        clicks = Counter()
        for (clicked,) in base.with_entities(SearchAnalytics.clicked_result_ids):
            clicks.update(clicked or [])

        return SearchPerformanceMetrics(
            avg_execution_time=round(float(avg_time or 0), 2),
            slow_queries=[
                SlowQuery(query=q, avg_time=round(float(t or 0), 2), count=c)
                for q, t, c in slow
            ],
            popular_results=[
                ResultClicks(result_id=result_id, click_count=count)
                for result_id, count in clicks.most_common(10)
            ],
            query_success_rate=round(with_results / total * 100, 2)
        )

    def save_query(
        self,
        user_id: str,
        name: str,
        query: str,
        filters: Optional[Dict[str, Any]] = None
    ) -> SavedQuery:
        """Create a saved query with use_count 0"""
        name = (name or "").strip()
        query = (query or "").strip()
        if not name or not query:
            raise ValidationException("Name and query are required")

        saved = SavedQuery(
            user_id=user_id,
            name=name,
            query=query,
            filters=filters or {},
            use_count=0
        )
        self.db.add(saved)
        self._commit("save query")
        self.db.refresh(saved)

        logger.info(f"Saved query {saved.id} for user {user_id}")
        return saved

    def get_saved_queries(self, user_id: str) -> List[SavedQuery]:
        """User's saved queries, most recently used first"""
        return self.db.query(SavedQuery).filter(
            SavedQuery.user_id == user_id
        ).order_by(desc(SavedQuery.last_used_at)).all()

    def update_usage(self, query_id: str, user_id: Optional[str] = None) -> bool:
        """Increment use_count and touch last_used_at"""
        query = self.db.query(SavedQuery).filter(SavedQuery.id == query_id)
        if user_id is not None:
            query = query.filter(SavedQuery.user_id == user_id)

        updated = query.update(
            {
                SavedQuery.use_count: SavedQuery.use_count + 1,
                SavedQuery.last_used_at: datetime.utcnow()
            },
            synchronize_session=False
        )
        self._commit("update saved query usage")
        return updated > 0

    def delete_saved_query(self, query_id: str, user_id: str) -> bool:
        """
        Delete a saved query owned by user_id

        Returns:
            False if the query does not exist or belongs to someone else
        """
        saved = self.db.query(SavedQuery).filter(SavedQuery.id == query_id).first()
        if not saved or saved.user_id != user_id:
            logger.info(f"Saved query {query_id} not deleted for user {user_id}")
            return False

        self.db.delete(saved)
        self._commit("delete saved query")
        return True

    def cleanup_old_analytics(self, days_to_keep: int = 90) -> int:
        """Delete search records older than days_to_keep days"""
        cutoff = self._since(days_to_keep)
        deleted = self.db.query(SearchAnalytics).filter(
            SearchAnalytics.created_at < cutoff
        ).delete(synchronize_session=False)
        self._commit("clean up search analytics")

        logger.info(f"Deleted {deleted} search analytics records older than {days_to_keep} days")
        return deleted
