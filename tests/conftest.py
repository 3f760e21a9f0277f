"""
Shared fixtures.

Every test gets its own in-memory SQLite database (aiosqlite + StaticPool so
all sessions share the single connection).
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from portal.core.session_context import SessionContext
from portal.database import create_tables, enable_sqlite_savepoints, get_db
from portal.models.user import UserRole
from portal.services.notification_center import NotificationCenter
from portal.services.record_store import SQLAlchemyRecordStore


ANALYTICS_DAY = date(2024, 1, 15)
BASE_TIME = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = enable_sqlite_savepoints(create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db):
    return SQLAlchemyRecordStore(db)


@pytest.fixture
def center(store):
    return NotificationCenter(store, page_size=50, broadcast_recipient="all_agents")


@pytest.fixture
def manager():
    return SessionContext(user_id="mgr_1", role=UserRole.MANAGER, name="Morgan")


@pytest.fixture
def agent_7():
    return SessionContext(user_id="agent_7", role=UserRole.AGENT, name="Agent Seven")


async def add_game(store, game_id, title, description=None, minutes=0):
    return await store.create("games", {
        "id": game_id,
        "title": title,
        "description": description,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    })


async def add_agent(store, agent_id, name, minutes=0):
    return await store.create("users", {
        "id": agent_id,
        "name": name,
        "email": f"{agent_id}@example.com",
        "role": UserRole.AGENT.value,
        "status": "active",
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    })


async def add_notification(store, notification_id, recipient_id, read_status=0, minutes=0, **fields):
    record = {
        "id": notification_id,
        "recipient_id": recipient_id,
        "title": fields.pop("title", f"Title {notification_id}"),
        "message": fields.pop("message", f"Message {notification_id}"),
        "type": fields.pop("type", "general"),
        "priority": fields.pop("priority", "normal"),
        "read_status": read_status,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    record.update(fields)
    return await store.create("notifications", record)


async def add_metric(store, collection, row_id, entity_id, metric_type, value, day=ANALYTICS_DAY, **fields):
    id_field = "game_id" if collection == "game_analytics" else "agent_id"
    return await store.create(collection, {
        "id": row_id,
        id_field: entity_id,
        "metric_type": metric_type,
        "metric_value": value,
        "date_recorded": day,
        **fields,
    })


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app, with get_db bound to the test database."""
    from portal.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def headers_for(context: SessionContext):
    headers = {"X-User-Id": context.user_id, "X-User-Role": context.role.value}
    if context.name:
        headers["X-User-Name"] = context.name
    return headers
