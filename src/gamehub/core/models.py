"""
Boundary layer data models.

These objects cross the boundary between the Service and the persistence / notification ports.
(Decouples the tables of the DB layer and the request models of the API layer from what the Service needs.)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from gamehub.core.shared_types import GameStatus

# Move payloads are plugin-defined: a string as typed by the user, or a structured dict
MovePayload = str | dict[str, Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class User:
    id: str
    username: str


@dataclass(frozen=True)
class Seat:
    """A user's place at a game. Seat order is 1-based and unique per game."""

    user_id: str
    seat_order: int
    role: Optional[str] = None
    joined_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class MoveRecord:
    """Append-only audit entry for one accepted move."""

    game_id: UUID
    player_id: str
    move: MovePayload
    board_state_after: dict[str, Any]
    sequence: int
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class GameCriteria:
    status: Optional[GameStatus] = None
    game_type: Optional[str] = None
    player_id: Optional[str] = None
    limit: Optional[int] = None
