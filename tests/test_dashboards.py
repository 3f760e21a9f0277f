"""Tests for the manager and agent dashboard services."""
import re
from decimal import Decimal

import pytest

from portal.models.notifications import seed_notification_types
from portal.schemas.catalog import GameCreate, AgentCreate, CredentialCreate, GameSettingCreate
from portal.schemas.commission import CommissionRuleCreate
from portal.schemas.notifications import NotificationCreate
from portal.services.agent_dashboard import AgentDashboardService
from portal.services.manager_dashboard import (
    ManagerDashboardService,
    DuplicateAgentError,
    generate_referral_code,
)
from portal.services.record_store import RecordStoreError, SQLAlchemyRecordStore

from conftest import ANALYTICS_DAY, add_agent, add_game, add_metric, add_notification


class FailingStore(SQLAlchemyRecordStore):
    """Store whose list() fails for selected collections."""

    def __init__(self, db, failing):
        super().__init__(db)
        self.failing = set(failing)

    async def list(self, collection, where=None, order_by=None, limit=None):
        if collection in self.failing:
            raise RecordStoreError(f"{collection} unavailable")
        return await super().list(collection, where=where, order_by=order_by, limit=limit)


async def seed_portal(store, db):
    await seed_notification_types(db)
    await add_game(store, "g1", "Juwa", minutes=1)
    await add_game(store, "g2", "Orion Star", minutes=2)
    await add_agent(store, "agent_7", "Agent Seven", minutes=1)
    await add_agent(store, "agent_8", "Agent Eight", minutes=2)
    await store.create("users", {
        "id": "mgr_1", "name": "Morgan", "email": "mgr@example.com", "role": "manager", "status": "active",
    })

    await store.create("agent_games", {"id": "ag1", "agent_id": "agent_7", "game_id": "g1"})
    await store.create("game_credentials", {
        "id": "c1", "game_id": "g1", "username": "juwa7", "password": "pw", "assigned_to": "agent_7",
    })
    await store.create("game_credentials", {
        "id": "c2", "game_id": "gX", "username": "ghost", "password": "pw", "assigned_to": "aY",
    })
    await store.create("commission_settings", {
        "id": "r1", "agent_id": "agent_7", "game_id": None,
        "commission_rate": Decimal("5"), "commission_type": "percentage",
    })
    await store.create("commission_settings", {
        "id": "r2", "agent_id": "agent_7", "game_id": "g1",
        "commission_rate": Decimal("10"), "commission_type": "percentage",
    })

    await add_metric(store, "game_analytics", "m1", "g1", "revenue", 500, agent_id="agent_7")
    await add_metric(store, "game_analytics", "m2", "g1", "players", 10, agent_id="agent_7")
    await add_metric(store, "game_analytics", "m3", "g2", "revenue", 300, agent_id="agent_7")
    await add_metric(store, "game_analytics", "m4", "g2", "revenue", 999,
                     day=ANALYTICS_DAY.replace(day=14), agent_id="agent_7")
    await add_metric(store, "agent_performance", "p1", "agent_7", "referrals", 4, day=None)
    await add_metric(store, "agent_performance", "p2", "agent_7", "total_revenue", 800, day=None)


# ==================== Manager ====================

async def test_manager_load_builds_overview(store, db):
    await seed_portal(store, db)
    await add_notification(store, "n1", "all_agents")

    dashboard = await ManagerDashboardService(store).load(ANALYTICS_DAY)

    assert not dashboard.load_failed
    assert [g.id for g in dashboard.games] == ["g1", "g2"]
    assert [a.id for a in dashboard.agents] == ["agent_7", "agent_8"]
    assert {c.id: (c.game_title, c.agent_name) for c in dashboard.credentials} == {
        "c1": ("Juwa", "Agent Seven"),
        "c2": ("Unknown Game", "Unassigned"),
    }
    assert [(r.id, r.game_title) for r in dashboard.commission_rules] == [("r1", "All Games"), ("r2", "Juwa")]
    assert dashboard.rule_conflicts == []

    assert [(s.game_id, s.revenue, s.players) for s in dashboard.game_analytics] == [
        ("g1", 500, 10),
        ("g2", 300, 0),
    ]
    [performance] = dashboard.agent_performance
    assert (performance.agent_name, performance.referrals, performance.total_revenue) == ("Agent Seven", 4, 800)

    assert dashboard.totals.total_games == 2
    assert dashboard.totals.active_agents == 2
    assert dashboard.totals.total_revenue == 800
    assert "game_assignment" in {t.name for t in dashboard.notification_types}
    assert dashboard.notification_stats.total == 1


async def test_manager_load_survives_failed_fetch(db):
    store = FailingStore(db, failing={"game_credentials"})
    await add_game(store, "g1", "Juwa")

    dashboard = await ManagerDashboardService(store).load(ANALYTICS_DAY)

    assert dashboard.load_failed
    assert dashboard.failed_collections == ["game_credentials"]
    assert dashboard.credentials == []
    assert [g.id for g in dashboard.games] == ["g1"]


async def test_create_game_announces_and_patches_snapshot(store, manager):
    service = ManagerDashboardService(store)
    dashboard = await service.load(ANALYTICS_DAY)

    game = await service.create_game(manager, GameCreate(title="Fire Kirin", description="Fish"), dashboard)

    assert game.id.startswith("game_")
    assert [g.title for g in dashboard.games] == ["Fire Kirin"]
    assert dashboard.totals.total_games == 1

    [notification] = dashboard.notifications
    assert notification.title == "New Game Added"
    assert notification.type == "game_assignment"
    assert notification.is_broadcast
    assert dashboard.notification_stats.unread == 1

    stored = await store.list("notifications")
    assert [n["id"] for n in stored] == [notification.id]


async def test_create_agent_assigns_referral_code(store, manager):
    service = ManagerDashboardService(store)

    agent = await service.create_agent(manager, AgentCreate(name="Dana", email="dana@example.com"))

    assert agent.role == "agent"
    assert agent.status == "active"
    assert re.fullmatch(r"REF_[A-Z0-9]{6}", agent.referral_code)

    [notification] = await store.list("notifications")
    assert notification["title"] == "New Agent Registered"
    assert notification["type"] == "agent_registration"
    assert notification["recipient_id"] == "all_agents"


async def test_duplicate_agent_email_is_rejected(store, manager):
    service = ManagerDashboardService(store)
    await service.create_agent(manager, AgentCreate(name="Dana", email="dana@example.com"))

    with pytest.raises(DuplicateAgentError):
        await service.create_agent(manager, AgentCreate(name="Dana Two", email="dana@example.com"))


def test_referral_code_format():
    code = generate_referral_code()

    assert code.startswith("REF_")
    assert len(code) == 10


async def test_assigned_credential_assigns_game_once(store, manager):
    await add_game(store, "g1", "Juwa")
    await add_agent(store, "agent_7", "Agent Seven")
    service = ManagerDashboardService(store)

    first = await service.create_credential(
        manager, CredentialCreate(game_id="g1", username="u1", password="p1", assigned_to="agent_7"),
    )
    await service.create_credential(
        manager, CredentialCreate(game_id="g1", username="u2", password="p2", assigned_to="agent_7"),
    )

    assert (first.game_title, first.agent_name) == ("Juwa", "Agent Seven")
    assignments = await store.list("agent_games", where={"agent_id": "agent_7"})
    assert [a["game_id"] for a in assignments] == ["g1"]


async def test_duplicate_rule_is_reported_in_snapshot(store, db, manager):
    await seed_portal(store, db)
    service = ManagerDashboardService(store)
    dashboard = await service.load(ANALYTICS_DAY)

    rule = await service.create_commission_rule(
        manager,
        CommissionRuleCreate(agent_id="agent_7", game_id="g1", commission_rate=Decimal("12"), commission_type="fixed"),
        dashboard,
    )

    assert rule.game_title == "Juwa"
    [conflict] = dashboard.rule_conflicts
    assert conflict.rule_ids == ["r2", rule.id]


async def test_game_setting_is_resolved(store, manager):
    await add_game(store, "g1", "Juwa")
    service = ManagerDashboardService(store)

    setting = await service.create_game_setting(
        manager, GameSettingCreate(game_id="g1", setting_key="min_deposit", setting_value="10"),
    )

    assert setting.game_title == "Juwa"
    assert setting.setting_type == "string"


async def test_send_targeted_notification(store, manager, agent_7):
    service = ManagerDashboardService(store)

    sent = await service.send_notification(
        manager, NotificationCreate(recipient_id="agent_7", title="Payout", message="Sent", priority="high"),
    )

    assert sent.recipient_id == "agent_7"
    assert not sent.is_broadcast
    page = await service.notifications.list_for_agent(agent_7)
    assert [n.id for n in page.items] == [sent.id]


# ==================== Agent ====================

async def test_agent_load_builds_dashboard(store, db, agent_7):
    await seed_portal(store, db)
    await add_notification(store, "n1", "all_agents", minutes=2)
    await add_notification(store, "n2", "agent_7", read_status=1, minutes=1)
    await add_notification(store, "n3", "agent_8", minutes=3)

    dashboard = await AgentDashboardService(store).load(agent_7, ANALYTICS_DAY)

    assert not dashboard.load_failed
    assert dashboard.agent_name == "Agent Seven"
    assert [g.id for g in dashboard.assigned_games] == ["g1"]
    assert [c.id for c in dashboard.credentials] == ["c1"]
    assert [n.id for n in dashboard.notifications] == ["n1", "n2"]
    assert dashboard.unread_count == 1

    assert dashboard.performance.referrals == 4
    assert dashboard.performance.total_revenue == 800

    lines = {line.game_id: line for line in dashboard.commission_lines}
    assert lines["g1"].rule_id == "r2"
    assert lines["g1"].commission_amount == Decimal("50")
    assert lines["g2"].rule_id == "r1"
    assert lines["g2"].commission_amount == Decimal("15")
    assert dashboard.total_commission == Decimal("65")


async def test_agent_without_data_gets_zeroes(store, agent_7):
    dashboard = await AgentDashboardService(store).load(agent_7, ANALYTICS_DAY)

    assert dashboard.agent_name == "Agent Seven"
    assert dashboard.assigned_games == []
    assert dashboard.performance.total_revenue == 0
    assert dashboard.total_commission == Decimal("0")
    assert dashboard.unread_count == 0


async def test_agent_load_survives_notification_failure(db, agent_7):
    store = FailingStore(db, failing={"notifications"})

    dashboard = await AgentDashboardService(store).load(agent_7, ANALYTICS_DAY)

    assert dashboard.load_failed
    assert dashboard.failed_collections == ["notifications"]
    assert dashboard.notifications == []


async def test_agent_marks_notifications_read(store, agent_7):
    await add_notification(store, "n1", "all_agents", minutes=1)
    await add_notification(store, "n2", "agent_7", minutes=2)
    service = AgentDashboardService(store)
    dashboard = await service.load(agent_7, ANALYTICS_DAY)
    assert dashboard.unread_count == 2

    assert await service.mark_notification_read(agent_7, dashboard, "n2") is True
    assert dashboard.unread_count == 1
    assert await service.mark_notification_read(agent_7, dashboard, "n2") is False

    assert await service.mark_all_notifications_read(agent_7, dashboard) == 1
    assert dashboard.unread_count == 0

    reloaded = await service.load(agent_7, ANALYTICS_DAY)
    assert reloaded.unread_count == 0
