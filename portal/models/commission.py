"""Commission rules configured per agent.

A rule either targets one game or, with game_id left empty, acts as the
agent's fallback for every game without a specific rule.
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class CommissionType(str, Enum):
    """How commission_rate is applied."""
    PERCENTAGE = "percentage"   # commission_rate % of revenue
    FIXED = "fixed"             # commission_rate as a flat amount


class CommissionSetting(Base):
    """
    Commission rule for an agent, optionally scoped to one game.
    """
    __tablename__ = "commission_settings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    agent_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    game_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="NULL means the rule applies to all games of the agent"
    )

    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 4),
        nullable=False,
        default=Decimal("0"),
        comment="Percentage or fixed amount depending on commission_type"
    )
    commission_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CommissionType.PERCENTAGE.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        Index('ix_commission_settings_agent_game', 'agent_id', 'game_id'),
    )
