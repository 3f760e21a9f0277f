"""
Record Store Adapter

Generic list/create/update over named collections. The dashboards and the
notification center only ever talk to this interface, so the filters are
kept to what they need:

    {"agent_id": "agent_7"}                       equality
    {"id": {"in": ["g1", "g2"]}}                  set membership
    {"OR": [{"recipient_id": "a"}, {...}]}        disjunction

Several keys in one mapping are AND-ed. Records travel as plain dicts.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type

from sqlalchemy import select, and_, or_, true, false, inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import Base
from portal.models import (
    Game, GameSetting, User, GameCredential, AgentGame, CommissionSetting,
    GameAnalytics, AgentPerformance, Notification, NotificationRead,
    NotificationTypeDefinition,
)


logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Where = Mapping[str, Any]

COLLECTIONS: Dict[str, Type[Base]] = {
    "games": Game,
    "game_settings": GameSetting,
    "users": User,
    "game_credentials": GameCredential,
    "agent_games": AgentGame,
    "commission_settings": CommissionSetting,
    "game_analytics": GameAnalytics,
    "agent_performance": AgentPerformance,
    "notifications": Notification,
    "notification_reads": NotificationRead,
    "notification_types": NotificationTypeDefinition,
}


def new_record_id(prefix: str) -> str:
    """Ids are supplied by the caller; prefix them with the record kind."""
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class RecordStoreError(Exception):
    """Raised when a record store call fails."""
    pass


class UnknownCollectionError(RecordStoreError):
    pass


class UnknownFieldError(RecordStoreError):
    pass


class RecordNotFoundError(RecordStoreError):
    """Raised when updating a record id that does not exist."""
    pass


class RecordStore(ABC):
    """Typed CRUD over named collections."""

    @abstractmethod
    async def list(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        pass

    @abstractmethod
    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        pass

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        pass


class SQLAlchemyRecordStore(RecordStore):
    """Record store backed by the SQLAlchemy models of this service."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Helpers ====================

    @staticmethod
    def _model(collection: str) -> Type[Base]:
        model = COLLECTIONS.get(collection)
        if model is None:
            raise UnknownCollectionError(f"Unknown collection: {collection}")
        return model

    @staticmethod
    def _columns(model: Type[Base]) -> List[str]:
        return [attr.key for attr in sa_inspect(model).column_attrs]

    def _column(self, model: Type[Base], field: str):
        if field not in self._columns(model):
            raise UnknownFieldError(f"{model.__tablename__} has no field '{field}'")
        return getattr(model, field)

    def _build_clause(self, model: Type[Base], where: Where):
        clauses = []
        for key, value in where.items():
            if key == "OR":
                branches = [self._build_clause(model, branch) for branch in value]
                # An empty disjunction matches nothing
                clauses.append(or_(*branches) if branches else false())
                continue

            column = self._column(model, key)
            if isinstance(value, Mapping):
                if set(value.keys()) != {"in"}:
                    raise RecordStoreError(f"Unsupported operator for '{key}': {sorted(value.keys())}")
                clauses.append(column.in_(list(value["in"])))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)

        if not clauses:
            return true()
        return and_(*clauses)

    def _to_dict(self, obj: Base) -> Record:
        return {key: getattr(obj, key) for key in self._columns(type(obj))}

    # ==================== Operations ====================

    async def list(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = self._model(collection)
        query = select(model)

        if where:
            query = query.where(self._build_clause(model, where))

        for field, direction in (order_by or {}).items():
            column = self._column(model, field)
            if str(direction).lower() == "desc":
                query = query.order_by(column.desc())
            else:
                query = query.order_by(column.asc())

        if limit is not None:
            query = query.limit(limit)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to list {collection}: {e}") from e

        return [self._to_dict(obj) for obj in result.scalars().all()]

    async def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        if not record.get("id"):
            raise RecordStoreError(f"Records created in {collection} must carry an id")

        columns = self._columns(model)
        unknown = [key for key in record if key not in columns]
        if unknown:
            raise UnknownFieldError(f"{collection} has no field(s): {', '.join(unknown)}")

        obj = model(**record)
        # Savepoint per write: a failed write leaves the rest of the unit of work intact
        try:
            async with self.db.begin_nested():
                self.db.add(obj)
                await self.db.flush()
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to create {collection} record {record['id']}: {e}") from e

        logger.debug("Created %s record %s", collection, record["id"])
        return self._to_dict(obj)

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        for key in fields:
            self._column(model, key)

        try:
            obj = await self.db.get(model, record_id)
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to load {collection} record {record_id}: {e}") from e

        if obj is None:
            raise RecordNotFoundError(f"{collection} record {record_id} not found")

        try:
            async with self.db.begin_nested():
                for key, value in fields.items():
                    setattr(obj, key, value)
                await self.db.flush()
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Failed to update {collection} record {record_id}: {e}") from e

        return self._to_dict(obj)
