"""Snapshots returned by the manager and agent dashboards."""
from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field

from portal.schemas.analytics import GameAnalyticsSummary, AgentPerformanceSummary, OverviewTotals
from portal.schemas.base import DisplayAmount
from portal.schemas.catalog import GameResponse, AgentResponse, CredentialResponse, GameSettingResponse
from portal.schemas.commission import CommissionRuleResponse, CommissionLine, RuleConflict
from portal.schemas.notifications import NotificationView, NotificationStats, NotificationTypeResponse


class ManagerDashboard(BaseModel):
    analytics_date: date
    games: List[GameResponse] = Field(default_factory=list)
    agents: List[AgentResponse] = Field(default_factory=list)
    credentials: List[CredentialResponse] = Field(default_factory=list)
    game_settings: List[GameSettingResponse] = Field(default_factory=list)
    commission_rules: List[CommissionRuleResponse] = Field(default_factory=list)
    rule_conflicts: List[RuleConflict] = Field(default_factory=list)
    game_analytics: List[GameAnalyticsSummary] = Field(default_factory=list)
    agent_performance: List[AgentPerformanceSummary] = Field(default_factory=list)
    notification_types: List[NotificationTypeResponse] = Field(default_factory=list)
    notifications: List[NotificationView] = Field(default_factory=list)
    notification_stats: NotificationStats = Field(
        default_factory=lambda: NotificationStats(total=0, unread=0, by_type={}, by_priority={})
    )
    totals: OverviewTotals = Field(default_factory=OverviewTotals)

    load_failed: bool = False
    failed_collections: List[str] = Field(default_factory=list)


class AgentDashboard(BaseModel):
    agent_id: str
    agent_name: str
    analytics_date: date
    assigned_games: List[GameResponse] = Field(default_factory=list)
    credentials: List[CredentialResponse] = Field(default_factory=list)
    notifications: List[NotificationView] = Field(default_factory=list)
    unread_count: int = 0
    performance: AgentPerformanceSummary
    game_analytics: List[GameAnalyticsSummary] = Field(default_factory=list)
    commission_rules: List[CommissionRuleResponse] = Field(default_factory=list)
    commission_lines: List[CommissionLine] = Field(default_factory=list)
    total_commission: DisplayAmount = Decimal("0")

    load_failed: bool = False
    failed_collections: List[str] = Field(default_factory=list)
