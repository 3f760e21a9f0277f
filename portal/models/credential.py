"""Game credentials and agent-to-game assignments."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from portal.database import Base


class GameCredential(Base):
    """
    Login issued by the manager for a game, optionally assigned to an agent.
    """
    __tablename__ = "game_credentials"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    game_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    username: Mapped[str] = mapped_column(String(200), nullable=False)
    password: Mapped[str] = mapped_column(String(200), nullable=False)

    # Agent id; None while unassigned
    assigned_to: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class AgentGame(Base):
    """
    Assignment of a game to an agent.
    """
    __tablename__ = "agent_games"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    agent_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    game_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False
    )

    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __table_args__ = (
        Index('ix_agent_games_agent_game', 'agent_id', 'game_id', unique=True),
    )
