"""
Abstract base class for game rule sets.

This module defines the contract every game implementation follows, so that the service can run
two-player boards, trick-taking card games and single-player patience through one pipeline.

The contract is whole-board-in, whole-board-out: a chess ply, a multi-card solitaire transfer and
a completed hearts trick mutate the board at very different granularities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Self, Sequence, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gamehub.core.exceptions import StateError, ValidationError
from gamehub.core.models import MovePayload, Seat
from gamehub.core.shared_types import GameType

BoardT = TypeVar("BoardT", bound=BaseModel)


@dataclass(frozen=True)
class MoveValidation:
    """Outcome of validating a move: accepted, or rejected with a message meant for the player."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def accept(cls) -> Self:
        return cls(True)

    @classmethod
    def reject(cls, error: str) -> Self:
        return cls(False, error)


@dataclass(frozen=True)
class PluginMetadata:
    game_type: str
    name: str
    description: str
    min_seats: int
    max_seats: int
    complexity: str = "Medium"
    categories: tuple[str, ...] = field(default_factory=tuple)


def seats_in_order(seats: Sequence[Seat]) -> list[Seat]:
    return sorted(seats, key=lambda seat: seat.seat_order)


def seat_by_role(seats: Sequence[Seat], role: str) -> Optional[Seat]:
    return next((seat for seat in seats if seat.role == role), None)


def seat_of(seats: Sequence[Seat], player_id: str) -> Optional[Seat]:
    return next((seat for seat in seats if seat.user_id == player_id), None)


def rotate_seats(current_player_id: str, seats: Sequence[Seat]) -> str:
    """Next seat in seat order, wrapping around."""
    ordered = seats_in_order(seats)
    if not ordered:
        raise StateError("No players are seated at this game")
    order = [seat.user_id for seat in ordered]
    if current_player_id not in order:
        return order[0]
    return order[(order.index(current_player_id) + 1) % len(order)]


class GamePlugin(ABC, Generic[BoardT]):
    """
    Interface every rule set implements.

    Attributes:
        game_type: Registry key for this rule set.
        display_name: Human-readable name.
        description: One-line description for game listings.
        min_seats / max_seats: Seat limits (1..10).
        force_start_seats: Seats needed before force_start_game may skip the normal seat fill.
        roles: Role (colour) names handed out by seat order.
        board_model: pydantic model of the plugin's board state. The service only ever sees
            the serialized form of it.
    """

    game_type: GameType
    display_name: str = ""
    description: str = ""
    min_seats: int = 2
    max_seats: int = 2
    roles: tuple[str, ...] = ()
    complexity: str = "Medium"
    categories: tuple[str, ...] = ()
    # fewest seats an administrator may start a waiting game with
    force_start_seats: int = 2
    board_model: type[BoardT]

    # --- seating ---
    def seat_limits(self) -> tuple[int, int]:
        return self.min_seats, self.max_seats

    def assign_seat_role(self, seat_order: int, max_seats: int) -> str:
        """Role for the player taking the given (1-based) seat."""
        if not 1 <= seat_order <= max_seats:
            raise StateError(f"Seat {seat_order} does not exist in a {max_seats}-seat game")
        if seat_order <= len(self.roles):
            return self.roles[seat_order - 1]
        return f"player{seat_order}"

    # --- rules ---
    @abstractmethod
    def initial_board_state(self, settings: dict[str, Any]) -> BoardT:
        """Board state for a new game."""

    def parse_move(self, raw: MovePayload) -> Any:
        """
        Turn user input into the plugin's move shape.

        Plugins with a textual move language override this and raise ValidationError for
        input they cannot read.
        """
        return raw

    @abstractmethod
    def validate_move(
        self, move: Any, board: BoardT, player_id: str, seats: Sequence[Seat]
    ) -> MoveValidation:
        """Check a move without changing anything."""

    @abstractmethod
    def apply_move(
        self, move: Any, board: BoardT, player_id: str, seats: Sequence[Seat]
    ) -> BoardT:
        """
        Return the board after the move. The input board is left untouched.

        Only call after validate_move accepted the move; implementations still raise
        ValidationError rather than produce a corrupt board.
        """

    @abstractmethod
    def is_complete(self, board: BoardT, seats: Sequence[Seat]) -> bool: ...

    @abstractmethod
    def winner(self, board: BoardT, seats: Sequence[Seat]) -> Optional[str]:
        """Winning player id, or None while in progress / for a draw."""

    def first_player(self, seats: Sequence[Seat], board: BoardT) -> str:
        """Who moves first once the game starts. Defaults to the first seat."""
        ordered = seats_in_order(seats)
        if not ordered:
            raise StateError("No players are seated at this game")
        return ordered[0].user_id

    @abstractmethod
    def next_player(
        self, current_player_id: str, seats: Sequence[Seat], board: BoardT
    ) -> str:
        """Whose turn it is after current_player_id moved. Turn order is owned by the plugin."""

    def on_complete(
        self, board: BoardT, seats: Sequence[Seat], winner: Optional[str]
    ) -> BoardT:
        """Hook for final bookkeeping (scores, bonuses) before the final board is persisted."""
        return board

    # --- projections ---
    @abstractmethod
    def render_projection(
        self, board: BoardT, seats: Sequence[Seat]
    ) -> dict[str, Any]: ...

    def stats_projection(self, board: BoardT, seats: Sequence[Seat]) -> dict[str, Any]:
        return {
            "game_type": str(self.game_type),
            "player_count": len(seats),
            "min_seats": self.min_seats,
            "max_seats": self.max_seats,
        }

    # --- persistence payload ---
    def serialize(self, board: BoardT) -> dict[str, Any]:
        return board.model_dump(mode="json")

    def deserialize(self, payload: dict[str, Any]) -> BoardT:
        try:
            return self.board_model.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid {self.game_type} board state: {exc.error_count()} problem(s) found"
            ) from exc

    @classmethod
    def metadata(cls) -> PluginMetadata:
        return PluginMetadata(
            game_type=str(cls.game_type),
            name=cls.display_name,
            description=cls.description,
            min_seats=cls.min_seats,
            max_seats=cls.max_seats,
            complexity=cls.complexity,
            categories=cls.categories,
        )
