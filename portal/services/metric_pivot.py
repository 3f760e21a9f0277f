"""
Metric Pivot Engine

Turns narrow (entity_id, metric_type, metric_value, date) rows into one
summary per entity:

    game_analytics     -> GameAnalyticsSummary(revenue, players, sessions)
    agent_performance  -> AgentPerformanceSummary(total_revenue, active_players,
                                                  referrals, commission_earned)

Metric types are closed per entity kind. Rows with any other metric_type
are dropped where they are ingested. Summaries come out in first-seen
order of their entity, missing metrics default to 0 and unknown entities
get a placeholder name. When one metric is reported more than once for an
entity, the row with the latest date wins (later rows win ties).
"""
import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from portal.schemas.analytics import (
    MetricRecord, GameAnalyticsSummary, AgentPerformanceSummary, OverviewTotals,
)
from portal.services.cross_reference import ReferenceIndex, UNKNOWN_GAME, UNKNOWN_AGENT


logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    GAME = "game"
    AGENT = "agent"


class GameMetric(str, Enum):
    REVENUE = "revenue"
    PLAYERS = "players"
    SESSIONS = "sessions"


class AgentMetric(str, Enum):
    TOTAL_REVENUE = "total_revenue"
    ACTIVE_PLAYERS = "active_players"
    REFERRALS = "referrals"
    COMMISSION_EARNED = "commission_earned"


METRICS_BY_KIND: Dict[EntityKind, Type[Enum]] = {
    EntityKind.GAME: GameMetric,
    EntityKind.AGENT: AgentMetric,
}


# ==================== Ingestion ====================

def _known_metric(kind: EntityKind, metric_type: Any) -> Optional[Enum]:
    try:
        return METRICS_BY_KIND[kind](metric_type)
    except ValueError:
        return None


def _ingest(rows: Iterable[Mapping[str, Any]], kind: EntityKind, id_field: str) -> List[MetricRecord]:
    records = []
    for row in rows:
        metric = _known_metric(kind, row.get("metric_type"))
        if metric is None:
            logger.debug(
                "Ignoring unknown %s metric %r for %s",
                kind.value, row.get("metric_type"), row.get(id_field),
            )
            continue
        records.append(MetricRecord(
            entity_id=row[id_field],
            entity_kind=kind.value,
            metric_type=metric.value,
            metric_value=row.get("metric_value") or 0,
            date=row.get("date_recorded"),
        ))
    return records


def game_metric_records(rows: Iterable[Mapping[str, Any]]) -> List[MetricRecord]:
    """Ingest game_analytics rows."""
    return _ingest(rows, EntityKind.GAME, "game_id")


def agent_metric_records(rows: Iterable[Mapping[str, Any]]) -> List[MetricRecord]:
    """Ingest agent_performance rows."""
    return _ingest(rows, EntityKind.AGENT, "agent_id")


# ==================== Pivot ====================

def _supersedes(new: Optional[date], current: Optional[date]) -> bool:
    # Undated rows rank below dated ones
    if current is None:
        return True
    if new is None:
        return False
    return new >= current


def _group(records: Iterable[MetricRecord], kind: EntityKind) -> Dict[str, Dict[str, float]]:
    latest: Dict[str, Dict[str, Tuple[float, Optional[date]]]] = {}
    for record in records:
        if record.entity_kind != kind.value:
            continue
        metric = _known_metric(kind, record.metric_type)
        fields = latest.setdefault(record.entity_id, {})
        if metric is None:
            continue
        current = fields.get(metric.value)
        if current is None or _supersedes(record.date, current[1]):
            fields[metric.value] = (record.metric_value, record.date)

    return {
        entity_id: {metric: value for metric, (value, _) in fields.items()}
        for entity_id, fields in latest.items()
    }


def pivot_game_analytics(
    records: Iterable[MetricRecord],
    games: Iterable[Mapping[str, Any]] = (),
    include_missing: bool = False,
) -> List[GameAnalyticsSummary]:
    """
    Build one GameAnalyticsSummary per game present in records.

    Args:
        records: Game metric records, already limited to the target date
        games: Game records used for title lookup
        include_missing: Also emit all-zero summaries for games that have
            no records, after the ones that do

    Returns:
        Summaries in first-seen order of game_id
    """
    games = list(games)
    index = ReferenceIndex(games=games)
    grouped = _group(records, EntityKind.GAME)

    if include_missing:
        for game in games:
            grouped.setdefault(game["id"], {})

    return [
        GameAnalyticsSummary(
            game_id=game_id,
            game_title=index.game_title(game_id, default=UNKNOWN_GAME),
            revenue=values.get(GameMetric.REVENUE.value, 0),
            players=values.get(GameMetric.PLAYERS.value, 0),
            sessions=values.get(GameMetric.SESSIONS.value, 0),
        )
        for game_id, values in grouped.items()
    ]


def pivot_agent_performance(
    records: Iterable[MetricRecord],
    agents: Iterable[Mapping[str, Any]] = (),
    include_missing: bool = False,
) -> List[AgentPerformanceSummary]:
    """Build one AgentPerformanceSummary per agent present in records."""
    agents = list(agents)
    index = ReferenceIndex(agents=agents)
    grouped = _group(records, EntityKind.AGENT)

    if include_missing:
        for agent in agents:
            grouped.setdefault(agent["id"], {})

    return [
        AgentPerformanceSummary(
            agent_id=agent_id,
            agent_name=index.agent_name(agent_id, default=UNKNOWN_AGENT),
            total_revenue=values.get(AgentMetric.TOTAL_REVENUE.value, 0),
            active_players=values.get(AgentMetric.ACTIVE_PLAYERS.value, 0),
            referrals=values.get(AgentMetric.REFERRALS.value, 0),
            commission_earned=values.get(AgentMetric.COMMISSION_EARNED.value, 0),
        )
        for agent_id, values in grouped.items()
    ]


def agent_summary(
    agent_id: str,
    records: Iterable[MetricRecord],
    agents: Iterable[Mapping[str, Any]] = (),
) -> AgentPerformanceSummary:
    """Summary for a single agent; all zeros when the agent has no records."""
    agents = list(agents)
    own = [record for record in records if record.entity_id == agent_id]
    summaries = pivot_agent_performance(own, agents)
    if summaries:
        return summaries[0]
    return AgentPerformanceSummary(
        agent_id=agent_id,
        agent_name=ReferenceIndex(agents=agents).agent_name(agent_id),
    )


def overview_totals(
    games: Iterable[Mapping[str, Any]],
    agents: Iterable[Mapping[str, Any]],
    game_summaries: Iterable[GameAnalyticsSummary],
) -> OverviewTotals:
    game_summaries = list(game_summaries)
    return OverviewTotals(
        total_games=len(list(games)),
        active_agents=len(list(agents)),
        total_revenue=sum(summary.revenue for summary in game_summaries),
        active_players=sum(summary.players for summary in game_summaries),
    )
