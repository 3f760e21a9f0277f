"""Tests for the SQLAlchemy-backed record store."""
import pytest

from portal.services.record_store import (
    RecordStoreError,
    UnknownCollectionError,
    UnknownFieldError,
    RecordNotFoundError,
    new_record_id,
)

from conftest import add_game, add_notification


async def seed_games(store):
    await add_game(store, "g1", "Juwa", minutes=1)
    await add_game(store, "g2", "Orion Star", minutes=2)
    await add_game(store, "g3", "Fire Kirin", minutes=3)


async def test_equality_filter(store):
    await seed_games(store)

    rows = await store.list("games", where={"title": "Orion Star"})

    assert [row["id"] for row in rows] == ["g2"]


async def test_set_membership_filter(store):
    await seed_games(store)

    rows = await store.list("games", where={"id": {"in": ["g1", "g3", "g9"]}}, order_by={"id": "asc"})

    assert [row["id"] for row in rows] == ["g1", "g3"]


async def test_or_filter_with_and(store):
    await add_notification(store, "n1", "agent_7", type="payment_alert")
    await add_notification(store, "n2", "all_agents", type="general")
    await add_notification(store, "n3", "agent_8", type="payment_alert")

    rows = await store.list(
        "notifications",
        where={
            "OR": [{"recipient_id": "agent_7"}, {"recipient_id": "all_agents"}],
            "type": "payment_alert",
        },
    )

    assert [row["id"] for row in rows] == ["n1"]


async def test_empty_or_matches_nothing(store):
    await seed_games(store)

    assert await store.list("games", where={"OR": []}) == []


async def test_order_and_limit(store):
    await seed_games(store)

    rows = await store.list("games", order_by={"created_at": "desc"}, limit=2)

    assert [row["id"] for row in rows] == ["g3", "g2"]


async def test_no_match_returns_empty_list(store):
    assert await store.list("games", where={"id": "missing"}) == []


async def test_none_matches_null_columns(store):
    await store.create("commission_settings", {
        "id": "r1", "agent_id": "a1", "game_id": None, "commission_rate": 5, "commission_type": "percentage",
    })
    await store.create("commission_settings", {
        "id": "r2", "agent_id": "a1", "game_id": "g1", "commission_rate": 10, "commission_type": "percentage",
    })

    rows = await store.list("commission_settings", where={"game_id": None})

    assert [row["id"] for row in rows] == ["r1"]


async def test_create_returns_plain_record(store):
    record = await add_game(store, "g1", "Juwa")

    assert isinstance(record, dict)
    assert record["id"] == "g1"
    assert record["title"] == "Juwa"
    assert "description" in record


async def test_update_changes_fields(store):
    await add_notification(store, "n1", "agent_7")

    updated = await store.update("notifications", "n1", {"read_status": 1})

    assert updated["read_status"] == 1


async def test_update_missing_record(store):
    with pytest.raises(RecordNotFoundError):
        await store.update("notifications", "missing", {"read_status": 1})


async def test_unknown_collection(store):
    with pytest.raises(UnknownCollectionError):
        await store.list("players")


async def test_unknown_field(store):
    with pytest.raises(UnknownFieldError):
        await store.list("games", where={"genre": "slots"})
    with pytest.raises(UnknownFieldError):
        await store.create("games", {"id": "g1", "title": "Juwa", "genre": "slots"})


async def test_create_requires_id(store):
    with pytest.raises(RecordStoreError):
        await store.create("games", {"title": "Juwa"})


async def test_unsupported_operator(store):
    with pytest.raises(RecordStoreError):
        await store.list("games", where={"title": {"like": "J%"}})


def test_record_ids_are_prefixed_and_unique():
    first, second = new_record_id("notif"), new_record_id("notif")

    assert first.startswith("notif_")
    assert len(first) == len("notif_") + 16
    assert first != second


async def test_failed_write_leaves_session_usable(store):
    await add_game(store, "g1", "Juwa", minutes=1)
    receipt = {"notification_id": "n1", "agent_id": "agent_7"}
    await store.create("notification_reads", {"id": "r1", **receipt})

    with pytest.raises(RecordStoreError):
        await store.create("notification_reads", {"id": "r2", **receipt})
    await add_game(store, "g2", "Orion Star", minutes=2)

    games = await store.list("games", order_by={"created_at": "asc"})
    assert [g["id"] for g in games] == ["g1", "g2"]
    receipts = await store.list("notification_reads")
    assert [r["id"] for r in receipts] == ["r1"]
