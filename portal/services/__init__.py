# Services module
from portal.services.record_store import RecordStore, SQLAlchemyRecordStore, RecordStoreError
from portal.services.notification_center import NotificationCenter, NotificationPage
from portal.services.manager_dashboard import ManagerDashboardService
from portal.services.agent_dashboard import AgentDashboardService

__all__ = [
    "RecordStore",
    "SQLAlchemyRecordStore",
    "RecordStoreError",
    "NotificationCenter",
    "NotificationPage",
    "ManagerDashboardService",
    "AgentDashboardService",
]
