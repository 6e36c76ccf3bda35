"""Database tables / schema"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from gamehub.core.models import utc_now


class Base(DeclarativeBase):
    pass


class DBUser(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str]
    game_type: Mapped[str] = mapped_column(index=True)
    status: Mapped[str] = mapped_column(index=True)
    current_player_id: Mapped[Optional[str]]
    board_state: Mapped[dict[str, Any]] = mapped_column(JSON)
    move_count: Mapped[int] = mapped_column(default=0)
    min_seats: Mapped[int]
    max_seats: Mapped[int]
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    # optimistic concurrency token
    version: Mapped[int] = mapped_column(default=0)


class DBSeat(Base):
    __tablename__ = "game_players"
    __table_args__ = (
        UniqueConstraint("game_id", "seat_order", name="uq_seat_order"),
        UniqueConstraint("game_id", "user_id", name="uq_seat_user"),
    )
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(index=True)
    seat_order: Mapped[int]
    role: Mapped[Optional[str]]
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)


class DBMove(Base):
    __tablename__ = "game_moves"
    __table_args__ = (UniqueConstraint("game_id", "sequence", name="uq_move_sequence"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    player_id: Mapped[str]
    move: Mapped[Any] = mapped_column(JSON)
    board_state_after: Mapped[dict[str, Any]] = mapped_column(JSON)
    sequence: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
