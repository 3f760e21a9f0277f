"""Shared loading behaviour of the manager and agent dashboards."""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from portal.config import settings
from portal.services.notification_center import NotificationCenter
from portal.services.record_store import RecordStore, RecordStoreError


logger = logging.getLogger(__name__)


def resolve_analytics_date(value: Optional[date] = None) -> date:
    """Requested day, else the configured ANALYTICS_DATE, else today (UTC)."""
    if value is not None:
        return value
    if settings.ANALYTICS_DATE is not None:
        return settings.ANALYTICS_DATE
    return datetime.now(timezone.utc).date()


class DashboardService:
    """
    Base for dashboard services.

    A failed fetch never aborts a load: the collection is treated as empty
    and its name is recorded so the snapshot can be flagged as failed.
    """

    def __init__(self, store: RecordStore, notification_center: Optional[NotificationCenter] = None):
        self.store = store
        self.notifications = notification_center or NotificationCenter(store)

    async def _safe_list(
        self,
        collection: str,
        failures: List[str],
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        try:
            return await self.store.list(collection, where=where, order_by=order_by, limit=limit)
        except RecordStoreError:
            logger.exception("Error loading %s", collection)
            failures.append(collection)
            return []
