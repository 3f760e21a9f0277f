# Import every model so Base.metadata knows all tables
from portal.models.game import Game, GameSetting
from portal.models.user import User, UserRole, UserStatus
from portal.models.credential import GameCredential, AgentGame
from portal.models.commission import CommissionSetting, CommissionType
from portal.models.analytics import GameAnalytics, AgentPerformance
from portal.models.notifications import (
    Notification,
    NotificationRead,
    NotificationTypeDefinition,
    NotificationPriority,
    ReadStatus,
)

__all__ = [
    "Game",
    "GameSetting",
    "User",
    "UserRole",
    "UserStatus",
    "GameCredential",
    "AgentGame",
    "CommissionSetting",
    "CommissionType",
    "GameAnalytics",
    "AgentPerformance",
    "Notification",
    "NotificationRead",
    "NotificationTypeDefinition",
    "NotificationPriority",
    "ReadStatus",
]
