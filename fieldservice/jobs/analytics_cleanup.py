"""Retention job for search analytics"""

import logging
from fieldservice.database.session import SessionLocal
from fieldservice.services.search_analytics import SearchAnalyticsService
from fieldservice.config import settings

logger = logging.getLogger(__name__)


def cleanup_search_analytics(days_to_keep: int = None) -> int:
    """
    Delete search analytics older than the retention period
    Run this periodically via scheduler

    Returns:
        Number of records deleted (0 on failure)
    """
    days_to_keep = days_to_keep or settings.SEARCH_ANALYTICS_RETENTION_DAYS
    db = SessionLocal()
    try:
        return SearchAnalyticsService(db).cleanup_old_analytics(days_to_keep)
    except Exception as e:
        logger.error(f"Search analytics cleanup failed: {str(e)}")
        return 0
    finally:
        db.close()
