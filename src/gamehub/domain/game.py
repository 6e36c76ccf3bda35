"""
The Game entity: lifecycle and turn pointer of one session.

Every transition returns a new snapshot. The board state is the plugin's serialized payload;
the entity never looks inside it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional, Self
from uuid import UUID, uuid4

from gamehub.core.exceptions import StateError, ValidationError
from gamehub.core.models import utc_now
from gamehub.core.shared_types import GameStatus

MAX_SEATS_LIMIT = 10


@dataclass(frozen=True)
class Game:
    name: str
    game_type: str
    board_state: dict[str, Any]
    min_seats: int
    max_seats: int
    id: UUID = field(default_factory=uuid4)
    status: GameStatus = GameStatus.WAITING
    current_player_id: Optional[str] = None
    move_count: int = 0
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    # optimistic concurrency token, bumped by the repository on every update
    version: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Game name cannot be empty")

        if not self.game_type or not self.game_type.strip():
            raise ValidationError("Game type cannot be empty")

        try:
            object.__setattr__(self, "status", GameStatus(self.status))
        except ValueError:
            raise ValidationError(f"Invalid game status: {self.status!r}") from None

        if self.min_seats < 1:
            raise ValidationError("Minimum seats must be at least 1")

        if self.max_seats > MAX_SEATS_LIMIT:
            raise ValidationError(f"Maximum seats cannot exceed {MAX_SEATS_LIMIT}")

        if self.min_seats > self.max_seats:
            raise ValidationError("Minimum seats cannot exceed maximum seats")

        if self.move_count < 0:
            raise ValidationError("Move count cannot be negative")

        if self.status != GameStatus.ACTIVE and self.current_player_id is not None:
            raise ValidationError(
                f"A {self.status} game cannot have a current player"
            )

    # --- transitions ---
    def start(self, first_player_id: str) -> Self:
        if self.status != GameStatus.WAITING:
            raise StateError(
                f"Game can only be started from waiting status. status: {self.status}"
            )
        return replace(
            self,
            status=GameStatus.ACTIVE,
            current_player_id=first_player_id,
            updated_at=utc_now(),
        )

    def make_move(
        self, next_player_id: Optional[str], new_board_state: dict[str, Any]
    ) -> Self:
        if self.status != GameStatus.ACTIVE:
            raise StateError(f"Can only make moves in active games. status: {self.status}")
        return replace(
            self,
            current_player_id=next_player_id,
            board_state=new_board_state,
            move_count=self.move_count + 1,
            updated_at=utc_now(),
        )

    def complete(self, winner_id: Optional[str] = None) -> Self:
        if self.status != GameStatus.ACTIVE:
            raise StateError(f"Can only complete active games. status: {self.status}")
        return replace(
            self,
            status=GameStatus.COMPLETED,
            current_player_id=None,
            settings={**self.settings, "winner_id": winner_id},
            updated_at=utc_now(),
        )

    def cancel(self) -> Self:
        if self.status == GameStatus.COMPLETED:
            raise StateError("Cannot cancel completed games")
        if self.status == GameStatus.CANCELLED:
            raise StateError("Game is already cancelled")
        return replace(
            self,
            status=GameStatus.CANCELLED,
            current_player_id=None,
            updated_at=utc_now(),
        )

    def update_settings(self, new_settings: dict[str, Any]) -> Self:
        return replace(
            self, settings={**self.settings, **new_settings}, updated_at=utc_now()
        )

    # --- queries ---
    def can_accept_players(self, seat_count: int) -> bool:
        return self.status == GameStatus.WAITING and seat_count < self.max_seats

    def can_start(self, seat_count: int) -> bool:
        return (
            self.status == GameStatus.WAITING
            and self.min_seats <= seat_count <= self.max_seats
        )

    def is_current_player(self, player_id: str) -> bool:
        return self.current_player_id == player_id

    def has_status(self, status: GameStatus) -> bool:
        return self.status == status

    @property
    def winner_id(self) -> Optional[str]:
        return self.settings.get("winner_id")

    # --- conversion ---
    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "game_type": self.game_type,
            "status": self.status,
            "current_player_id": self.current_player_id,
            "board_state": self.board_state,
            "move_count": self.move_count,
            "min_seats": self.min_seats,
            "max_seats": self.max_seats,
            "settings": dict(self.settings),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        values = dict(data)
        if isinstance(values.get("id"), str):
            values["id"] = UUID(values["id"])
        for key in ("created_at", "updated_at"):
            if isinstance(values.get(key), str):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)
