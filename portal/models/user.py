from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class UserRole(str, Enum):
    """Portal roles; the role selects which dashboard a user sees."""
    MANAGER = "manager"
    AGENT = "agent"


class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(Base):
    """
    Portal user. Agents are users with role=agent.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True, default=UserRole.AGENT.value)

    # Agent onboarding
    referral_code: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=UserStatus.ACTIVE.value, nullable=False)

    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
