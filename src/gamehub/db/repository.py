"""Persistence ports. The service depends on these protocols only; SQL adapters live in sql_repository."""

from typing import Any, Optional, Protocol
from uuid import UUID

from gamehub.core.models import GameCriteria, MovePayload, MoveRecord, Seat, User
from gamehub.domain.game import Game


class GameRepository(Protocol):
    """Storage of games, their seats and their move history."""

    def save(self, game: Game) -> Game:
        """Store a new game."""
        ...

    def find_by_id(self, game_id: UUID) -> Optional[Game]: ...

    def find_by_criteria(self, criteria: GameCriteria) -> list[Game]:
        """Newest first. Every criteria field that is set must match."""
        ...

    def update(
        self,
        game_id: UUID,
        fields: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Game:
        """
        Write the given fields and bump the version.

        Raises NotFoundError for an unknown game, and ConcurrencyError when expected_version is
        given and no longer matches the stored version.
        """
        ...

    def delete(self, game_id: UUID) -> bool: ...

    def add_player(
        self, game_id: UUID, user_id: str, seat_order: int, role: Optional[str]
    ) -> Seat:
        """Seat a user. Raises StateError when the seat or the user is already taken at this game."""
        ...

    def get_players(self, game_id: UUID) -> list[Seat]:
        """Seats in seat order."""
        ...

    def save_move(
        self,
        game_id: UUID,
        player_id: str,
        move: MovePayload,
        board_state_after: dict[str, Any],
        sequence: int,
    ) -> MoveRecord: ...

    def get_move_history(
        self, game_id: UUID, limit: Optional[int] = None
    ) -> list[MoveRecord]:
        """Records in sequence order."""
        ...

    def commit_move(
        self, game: Game, record: MoveRecord, expected_version: int
    ) -> Game:
        """
        Append the move record and write the game's new state in one transaction.

        Nothing is written when the stored version differs from expected_version (ConcurrencyError).
        """
        ...


class UserRepository(Protocol):
    def find_by_id(self, user_id: str) -> Optional[User]: ...

    def create_user(self, username: str, user_id: Optional[str] = None) -> User: ...
