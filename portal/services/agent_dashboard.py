"""
Agent Dashboard Service

Everything an agent sees: assigned games, their credentials, notifications,
own performance, per-game analytics for the day and the commission those
games earn under the agent's rules.
"""
import logging
from datetime import date
from typing import List, Optional

from portal.core.session_context import SessionContext
from portal.schemas.catalog import GameResponse
from portal.schemas.dashboard import AgentDashboard
from portal.services.commission_calculator import commission_lines, total_commission
from portal.services.cross_reference import (
    ReferenceIndex, resolve_credentials, resolve_commission_rules,
)
from portal.services.dashboard_base import DashboardService, resolve_analytics_date
from portal.services.metric_pivot import (
    game_metric_records, agent_metric_records, pivot_game_analytics, agent_summary,
)
from portal.services.notification_center import NotificationPage
from portal.services.record_store import RecordStoreError


logger = logging.getLogger(__name__)


class AgentDashboardService(DashboardService):
    """Loads the agent's dashboard and applies notification read actions."""

    async def load(self, context: SessionContext, analytics_date: Optional[date] = None) -> AgentDashboard:
        target_date = resolve_analytics_date(analytics_date)
        failures: List[str] = []
        agent_id = context.user_id

        assignments = await self._safe_list("agent_games", failures, where={"agent_id": agent_id})
        credentials = await self._safe_list("game_credentials", failures, where={"assigned_to": agent_id})
        analytics_rows = await self._safe_list(
            "game_analytics", failures,
            where={"agent_id": agent_id, "date_recorded": target_date},
        )
        performance_rows = await self._safe_list("agent_performance", failures, where={"agent_id": agent_id})
        rules = await self._safe_list("commission_settings", failures, where={"agent_id": agent_id})
        agents = await self._safe_list("users", failures, where={"id": agent_id})

        # Titles are needed for every game the agent's rows point at
        assigned_ids = [assignment["game_id"] for assignment in assignments]
        referenced_ids = set(assigned_ids)
        referenced_ids.update(credential["game_id"] for credential in credentials)
        referenced_ids.update(row["game_id"] for row in analytics_rows)
        referenced_ids.update(rule["game_id"] for rule in rules if rule.get("game_id"))
        games = []
        if referenced_ids:
            games = await self._safe_list("games", failures, where={"id": {"in": sorted(referenced_ids)}})

        try:
            page = await self.notifications.list_for_agent(context)
        except RecordStoreError:
            logger.exception("Error loading notifications for %s", agent_id)
            failures.append("notifications")
            page = NotificationPage(viewer_id=agent_id)

        if not agents and context.name:
            agents = [{"id": agent_id, "name": context.name}]
        index = ReferenceIndex(games=games, agents=agents)

        games_by_id = {game["id"]: game for game in games}
        assigned_games = [
            GameResponse.model_validate(games_by_id[game_id])
            for game_id in dict.fromkeys(assigned_ids)
            if game_id in games_by_id
        ]

        game_analytics = pivot_game_analytics(game_metric_records(analytics_rows), games)
        lines = commission_lines(game_analytics, rules, agent_id)

        return AgentDashboard(
            agent_id=agent_id,
            agent_name=index.agent_name(agent_id),
            analytics_date=target_date,
            assigned_games=assigned_games,
            credentials=resolve_credentials(credentials, index),
            notifications=page.items,
            unread_count=page.unread_count,
            performance=agent_summary(agent_id, agent_metric_records(performance_rows), agents),
            game_analytics=game_analytics,
            commission_rules=resolve_commission_rules(rules, index),
            commission_lines=lines,
            total_commission=total_commission(lines),
            load_failed=bool(failures),
            failed_collections=failures,
        )

    async def mark_notification_read(
        self,
        context: SessionContext,
        dashboard: AgentDashboard,
        notification_id: str,
    ) -> bool:
        """Mark one notification read and patch the dashboard snapshot."""
        page = NotificationPage(viewer_id=context.user_id, items=dashboard.notifications)
        changed = await self.notifications.mark_as_read(context, page, notification_id)
        dashboard.notifications = page.items
        dashboard.unread_count = page.unread_count
        return changed

    async def mark_all_notifications_read(self, context: SessionContext, dashboard: AgentDashboard) -> int:
        """Mark every unread notification of the snapshot read."""
        page = NotificationPage(viewer_id=context.user_id, items=dashboard.notifications)
        marked = await self.notifications.mark_all_as_read(context, page)
        dashboard.notifications = page.items
        dashboard.unread_count = page.unread_count
        return marked
