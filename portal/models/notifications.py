"""Database models for Notifications module."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text, DateTime, Boolean, Integer, Index, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class NotificationPriority(str, Enum):
    """Priority levels for notifications (presentation only)."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class ReadStatus(int, Enum):
    UNREAD = 0
    READ = 1


class Notification(Base):
    """
    Notification sent by the manager.

    recipient_id is either an agent id or the broadcast sentinel
    ("all_agents"). read_status is only flipped for targeted notifications;
    broadcast reads are recorded per agent in NotificationRead.
    """
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sender_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="general", index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=NotificationPriority.NORMAL.value)

    action_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    read_status: Mapped[int] = mapped_column(Integer, nullable=False, default=ReadStatus.UNREAD.value)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_notifications_recipient_created', 'recipient_id', 'created_at'),
    )


class NotificationRead(Base):
    """
    Tracks which agents have read a broadcast notification.
    """
    __tablename__ = "notification_reads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    notification_id: Mapped[str] = mapped_column(String(64), nullable=False)
    agent_id: Mapped[str] = mapped_column(String(64), nullable=False)

    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        Index('ix_notification_reads_unique', 'notification_id', 'agent_id', unique=True),
    )


class NotificationTypeDefinition(Base):
    """
    Catalog of notification types shown in the manager's settings.
    """
    __tablename__ = "notification_types"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    default_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


DEFAULT_NOTIFICATION_TYPES = [
    ("general", "General announcements"),
    ("agent_registration", "A new agent joined the platform"),
    ("game_assignment", "A game was added or assigned"),
    ("suspicious_activity", "Unusual activity on an account"),
    ("payment_alert", "Payments and payouts"),
    ("system_maintenance", "Planned maintenance windows"),
    ("performance_milestone", "Performance targets reached"),
]


async def seed_notification_types(session: AsyncSession) -> int:
    """Insert any missing default notification types. Returns rows created."""
    result = await session.execute(select(NotificationTypeDefinition.name))
    existing = set(result.scalars().all())

    created = 0
    for name, description in DEFAULT_NOTIFICATION_TYPES:
        if name in existing:
            continue
        session.add(NotificationTypeDefinition(
            id=f"ntype_{name}",
            name=name,
            description=description,
            default_enabled=True,
        ))
        created += 1

    await session.flush()
    return created
