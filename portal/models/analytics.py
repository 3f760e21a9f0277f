"""Metric rows written by the metering pipeline.

Both tables are narrow key/value facts: one row per
(entity, metric_type, date_recorded). Summaries are derived from them on
every dashboard load and never stored.
"""
from datetime import date
from typing import Optional

from sqlalchemy import String, Float, Date, Index
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class GameAnalytics(Base):
    __tablename__ = "game_analytics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Set when the row is attributed to a single agent's traffic
    agent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    metric_type: Mapped[str] = mapped_column(String(50), nullable=False, comment="revenue, players, sessions")
    metric_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    date_recorded: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index('ix_game_analytics_game_date', 'game_id', 'date_recorded'),
        Index('ix_game_analytics_date', 'date_recorded'),
    )


class AgentPerformance(Base):
    __tablename__ = "agent_performance"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    agent_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    metric_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="total_revenue, active_players, referrals, commission_earned"
    )
    metric_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    date_recorded: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
