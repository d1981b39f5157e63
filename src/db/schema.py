"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.shared_types import Status


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    """One row per game session. Columns mirror the GameModel snapshot one to one."""

    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    board: Mapped[list[list[Optional[dict[str, Any]]]]] = mapped_column(JSON)
    phase: Mapped[str]
    current_turn: Mapped[str]
    move_history: Mapped[list[str]] = mapped_column(JSON, default=list)
    game_status: Mapped[str] = mapped_column(default=Status.WAITING_FOR_OPPONENT.value)
    white_budget: Mapped[int]
    black_budget: Mapped[int]
    white_setup_complete: Mapped[bool] = mapped_column(default=False)
    black_setup_complete: Mapped[bool] = mapped_column(default=False)
    fog_of_war_enabled: Mapped[bool] = mapped_column(default=False)
    move_time_limit: Mapped[int] = mapped_column(default=0)
    time_remaining_white: Mapped[int]
    time_remaining_black: Mapped[int]
    players: Mapped[dict[str, str]] = mapped_column(JSON)
    version: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBSavedSetup(Base):
    """Army layouts a player saved during setup. One per (player, name): saving under an existing name overwrites."""

    __tablename__ = "saved_setups"
    __table_args__ = (UniqueConstraint("owner", "name"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner: Mapped[str]
    name: Mapped[str]
    side: Mapped[str]
    pieces: Mapped[dict[str, str]] = mapped_column(JSON)
    budget: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
