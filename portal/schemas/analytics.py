"""Pydantic schemas for metric summaries."""
import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from portal.schemas.base import BaseResponseSchema


class MetricRecord(BaseModel):
    """A single (entity, metric_type, value, date) fact."""
    model_config = ConfigDict(frozen=True)

    entity_id: str
    entity_kind: str
    metric_type: str
    metric_value: float = 0
    date: Optional[datetime.date] = None


class GameAnalyticsSummary(BaseResponseSchema):
    game_id: str
    game_title: str
    revenue: float = 0
    players: float = 0
    sessions: float = 0


class AgentPerformanceSummary(BaseResponseSchema):
    agent_id: str
    agent_name: str
    total_revenue: float = 0
    active_players: float = 0
    referrals: float = 0
    commission_earned: float = 0


class OverviewTotals(BaseModel):
    """Headline numbers of the manager overview."""
    total_games: int = 0
    active_agents: int = 0
    total_revenue: float = 0
    active_players: float = 0
