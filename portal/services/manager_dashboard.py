"""
Manager Dashboard Service

Loads everything the manager overview needs in one pass and applies the
manager's actions (games, agents, credentials, commission rules, game
settings, notifications). Each action patches a loaded snapshot when one
is passed in, so the caller does not need to reload.
"""
import logging
import secrets
import string
from datetime import date, datetime, timezone
from typing import List, Optional

from portal.config import settings
from portal.core.session_context import SessionContext
from portal.models.user import UserRole, UserStatus
from portal.schemas.catalog import (
    GameCreate, GameResponse, AgentCreate, AgentResponse,
    CredentialCreate, CredentialResponse, GameSettingCreate, GameSettingResponse,
)
from portal.schemas.commission import CommissionRuleCreate, CommissionRuleResponse
from portal.schemas.dashboard import ManagerDashboard
from portal.schemas.notifications import NotificationCreate, NotificationView
from portal.services.commission_calculator import find_rule_conflicts
from portal.services.cross_reference import (
    ReferenceIndex, resolve_credentials, resolve_commission_rules, resolve_game_settings,
    search_games,
)
from portal.services.dashboard_base import DashboardService, resolve_analytics_date
from portal.services.metric_pivot import (
    game_metric_records, agent_metric_records,
    pivot_game_analytics, pivot_agent_performance, overview_totals,
)
from portal.services.notification_center import notification_stats
from portal.services.record_store import RecordStoreError, new_record_id


logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


class DuplicateAgentError(ValueError):
    """Raised when an agent email is already registered."""
    pass


def generate_referral_code(length: int = 6) -> str:
    """Referral code such as REF_7QX2LM."""
    suffix = "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))
    return f"{settings.REFERRAL_CODE_PREFIX}{suffix}"


class ManagerDashboardService(DashboardService):
    """Loads the manager overview and applies manager actions."""

    async def load(self, analytics_date: Optional[date] = None) -> ManagerDashboard:
        target_date = resolve_analytics_date(analytics_date)
        failures: List[str] = []

        games = await self._safe_list("games", failures, order_by={"created_at": "asc"})
        agents = await self._safe_list(
            "users", failures,
            where={"role": UserRole.AGENT.value},
            order_by={"created_at": "asc"},
        )
        credentials = await self._safe_list("game_credentials", failures)
        game_settings = await self._safe_list("game_settings", failures)
        rules = await self._safe_list("commission_settings", failures)
        analytics_rows = await self._safe_list(
            "game_analytics", failures, where={"date_recorded": target_date}
        )
        performance_rows = await self._safe_list("agent_performance", failures)
        notification_types = await self._safe_list("notification_types", failures, order_by={"name": "asc"})

        try:
            sent = (await self.notifications.list_sent()).items
        except RecordStoreError:
            logger.exception("Error loading notifications")
            failures.append("notifications")
            sent = []

        index = ReferenceIndex(games=games, agents=agents)
        game_analytics = pivot_game_analytics(game_metric_records(analytics_rows), games)

        return ManagerDashboard(
            analytics_date=target_date,
            games=[GameResponse.model_validate(game) for game in games],
            agents=[AgentResponse.model_validate(agent) for agent in agents],
            credentials=resolve_credentials(credentials, index),
            game_settings=resolve_game_settings(game_settings, index),
            commission_rules=resolve_commission_rules(rules, index),
            rule_conflicts=find_rule_conflicts(rules),
            game_analytics=game_analytics,
            agent_performance=pivot_agent_performance(agent_metric_records(performance_rows), agents),
            notification_types=notification_types,
            notifications=sent,
            notification_stats=notification_stats(sent),
            totals=overview_totals(games, agents, game_analytics),
            load_failed=bool(failures),
            failed_collections=failures,
        )

    async def list_games(self, search: Optional[str] = None) -> List[GameResponse]:
        """Game catalogue, optionally filtered by a title/description search term."""
        games = await self.store.list("games", order_by={"created_at": "asc"})
        return [GameResponse.model_validate(game) for game in search_games(games, search)]

    # ==================== Helpers ====================

    def _index(self, dashboard: Optional[ManagerDashboard]) -> ReferenceIndex:
        if dashboard is None:
            return ReferenceIndex()
        return ReferenceIndex(
            games=[game.model_dump() for game in dashboard.games],
            agents=[agent.model_dump() for agent in dashboard.agents],
        )

    async def _lookup_index(self, game_id: Optional[str], agent_id: Optional[str]) -> ReferenceIndex:
        games = await self.store.list("games", where={"id": game_id}) if game_id else []
        agents = await self.store.list("users", where={"id": agent_id}) if agent_id else []
        return ReferenceIndex(games=games, agents=agents)

    async def _announce(self, context: SessionContext, title: str, message: str, notification_type: str) -> Optional[NotificationView]:
        try:
            return await self.notifications.create(
                title=title,
                message=message,
                notification_type=notification_type,
                sender=context,
            )
        except RecordStoreError:
            logger.exception("Error sending notification %r", title)
            return None

    @staticmethod
    def _patch_notification(dashboard: Optional[ManagerDashboard], notification: Optional[NotificationView]) -> None:
        if dashboard is None or notification is None:
            return
        dashboard.notifications = [notification] + dashboard.notifications
        dashboard.notification_stats = notification_stats(dashboard.notifications)

    # ==================== Actions ====================

    async def create_game(
        self,
        context: SessionContext,
        data: GameCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> GameResponse:
        """Create a game and announce it to all agents."""
        record = await self.store.create("games", {
            "id": new_record_id("game"),
            **data.model_dump(),
            "created_by": context.user_id,
            "created_at": datetime.now(timezone.utc),
        })
        game = GameResponse.model_validate(record)
        logger.info("Game %s (%s) created by %s", game.id, game.title, context.user_id)

        notification = await self._announce(
            context,
            "New Game Added",
            f"{game.title} has been added to the platform",
            "game_assignment",
        )

        if dashboard is not None:
            dashboard.games = dashboard.games + [game]
            dashboard.totals = dashboard.totals.model_copy(update={"total_games": len(dashboard.games)})
            self._patch_notification(dashboard, notification)
        return game

    async def create_agent(
        self,
        context: SessionContext,
        data: AgentCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> AgentResponse:
        """Register an agent with a fresh referral code and announce it."""
        existing = await self.store.list("users", where={"email": str(data.email)}, limit=1)
        if existing:
            raise DuplicateAgentError(f"A user with email {data.email} already exists")

        record = await self.store.create("users", {
            "id": new_record_id("agent"),
            "name": data.name,
            "email": str(data.email),
            "role": UserRole.AGENT.value,
            "referral_code": generate_referral_code(),
            "status": UserStatus.ACTIVE.value,
            "created_by": context.user_id,
            "created_at": datetime.now(timezone.utc),
        })
        agent = AgentResponse.model_validate(record)
        logger.info("Agent %s registered by %s", agent.id, context.user_id)

        notification = await self._announce(
            context,
            "New Agent Registered",
            f"{agent.name} has joined the platform",
            "agent_registration",
        )

        if dashboard is not None:
            dashboard.agents = dashboard.agents + [agent]
            dashboard.totals = dashboard.totals.model_copy(update={"active_agents": len(dashboard.agents)})
            self._patch_notification(dashboard, notification)
        return agent

    async def create_credential(
        self,
        context: SessionContext,
        data: CredentialCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> CredentialResponse:
        """Issue a credential; assigning it also assigns the game to the agent."""
        record = await self.store.create("game_credentials", {
            "id": new_record_id("cred"),
            "game_id": data.game_id,
            "username": data.username,
            "password": data.password,
            "assigned_to": data.assigned_to,
            "created_at": datetime.now(timezone.utc),
        })

        if data.assigned_to and data.assign_game:
            existing = await self.store.list(
                "agent_games",
                where={"agent_id": data.assigned_to, "game_id": data.game_id},
                limit=1,
            )
            if not existing:
                await self.store.create("agent_games", {
                    "id": new_record_id("ag"),
                    "agent_id": data.assigned_to,
                    "game_id": data.game_id,
                    "assigned_at": datetime.now(timezone.utc),
                })

        index = self._index(dashboard) if dashboard is not None else await self._lookup_index(data.game_id, data.assigned_to)
        credential = resolve_credentials([record], index)[0]
        logger.info("Credential %s for game %s created by %s", credential.id, credential.game_id, context.user_id)

        if dashboard is not None:
            dashboard.credentials = dashboard.credentials + [credential]
        return credential

    async def create_commission_rule(
        self,
        context: SessionContext,
        data: CommissionRuleCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> CommissionRuleResponse:
        record = await self.store.create("commission_settings", {
            "id": new_record_id("comm"),
            "agent_id": data.agent_id,
            "game_id": data.game_id,
            "commission_rate": data.commission_rate,
            "commission_type": data.commission_type.value,
            "created_at": datetime.now(timezone.utc),
        })

        index = self._index(dashboard) if dashboard is not None else await self._lookup_index(data.game_id, data.agent_id)
        rule = resolve_commission_rules([record], index)[0]
        logger.info("Commission rule %s for agent %s created by %s", rule.id, rule.agent_id, context.user_id)

        if dashboard is not None:
            dashboard.commission_rules = dashboard.commission_rules + [rule]
            dashboard.rule_conflicts = find_rule_conflicts(
                [existing.model_dump() for existing in dashboard.commission_rules]
            )
        return rule

    async def create_game_setting(
        self,
        context: SessionContext,
        data: GameSettingCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> GameSettingResponse:
        record = await self.store.create("game_settings", {
            "id": new_record_id("gset"),
            **data.model_dump(),
            "created_at": datetime.now(timezone.utc),
        })

        index = self._index(dashboard) if dashboard is not None else await self._lookup_index(data.game_id, None)
        setting = resolve_game_settings([record], index)[0]

        if dashboard is not None:
            dashboard.game_settings = dashboard.game_settings + [setting]
        return setting

    async def send_notification(
        self,
        context: SessionContext,
        data: NotificationCreate,
        dashboard: Optional[ManagerDashboard] = None,
    ) -> NotificationView:
        notification = await self.notifications.create(
            title=data.title,
            message=data.message,
            recipient_id=data.recipient_id,
            notification_type=data.type,
            priority=data.priority.value,
            action_url=data.action_url,
            expires_at=data.expires_at,
            sender=context,
        )
        self._patch_notification(dashboard, notification)
        return notification
