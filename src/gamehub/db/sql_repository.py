"""Implementation of the repository ports using SQLAlchemy"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gamehub.core.exceptions import (
    ConcurrencyError,
    GameHubError,
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from gamehub.core.models import GameCriteria, MovePayload, MoveRecord, Seat, User, utc_now
from gamehub.db.schema import DBGame, DBMove, DBSeat, DBUser
from gamehub.domain.game import Game

logger = logging.getLogger(__name__)

# columns the service may write through update()
UPDATABLE_FIELDS = frozenset(
    {"name", "status", "current_player_id", "board_state", "move_count", "settings"}
)


def _as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SQLGameRepository:
    """Games, seats and moves stored using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    @contextmanager
    def _transaction(
        self, action: str, on_conflict: Optional[GameHubError] = None
    ) -> Iterator[None]:
        """
        Commit on success. Driver errors are rolled back and reported as PersistenceError, or as
        on_conflict when a unique constraint rejects the write.
        """
        try:
            yield
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if on_conflict is not None:
                raise on_conflict from exc
            logger.error(f"Failed to {action}: {exc}")
            raise PersistenceError(f"Failed to {action}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to {action}: {exc}")
            raise PersistenceError(f"Failed to {action}") from exc
        except Exception:
            self.db.rollback()
            raise

    # --- games ---
    def save(self, game: Game) -> Game:
        game_db = DBGame(
            id=game.id,
            name=game.name,
            game_type=game.game_type,
            status=str(game.status),
            current_player_id=game.current_player_id,
            board_state=game.board_state,
            move_count=game.move_count,
            min_seats=game.min_seats,
            max_seats=game.max_seats,
            settings=game.settings,
            created_at=game.created_at,
            updated_at=game.updated_at,
            version=game.version,
        )
        with self._transaction("save game"):
            self.db.add(game_db)
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def find_by_id(self, game_id: UUID) -> Optional[Game]:
        game_db = self._fetch_game(game_id)
        return self._to_model(game_db) if game_db else None

    def find_by_criteria(self, criteria: GameCriteria) -> list[Game]:
        query = select(DBGame).order_by(DBGame.created_at.desc())
        if criteria.status is not None:
            query = query.where(DBGame.status == str(criteria.status))
        if criteria.game_type is not None:
            query = query.where(DBGame.game_type == criteria.game_type)
        if criteria.player_id is not None:
            seated = select(DBSeat.game_id).where(DBSeat.user_id == criteria.player_id)
            query = query.where(DBGame.id.in_(seated))
        if criteria.limit is not None:
            query = query.limit(criteria.limit)
        return [self._to_model(game_db) for game_db in self.db.scalars(query)]

    def update(
        self,
        game_id: UUID,
        fields: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Game:
        with self._transaction("update game"):
            self._write_game(game_id, fields, expected_version)
        return self._require_game(game_id)

    def delete(self, game_id: UUID) -> bool:
        with self._transaction("delete game"):
            self.db.execute(delete(DBMove).where(DBMove.game_id == game_id))
            self.db.execute(delete(DBSeat).where(DBSeat.game_id == game_id))
            result = self.db.execute(delete(DBGame).where(DBGame.id == game_id))
        return result.rowcount > 0

    # --- seats ---
    def add_player(
        self, game_id: UUID, user_id: str, seat_order: int, role: Optional[str]
    ) -> Seat:
        seat_db = DBSeat(
            game_id=game_id, user_id=user_id, seat_order=seat_order, role=role, joined_at=utc_now()
        )
        conflict = StateError(f"Seat {seat_order} is taken or user {user_id} is already seated")
        with self._transaction("seat player", on_conflict=conflict):
            self.db.add(seat_db)
            self.db.flush()
        return self._to_seat(seat_db)

    def get_players(self, game_id: UUID) -> list[Seat]:
        query = select(DBSeat).where(DBSeat.game_id == game_id).order_by(DBSeat.seat_order)
        return [self._to_seat(seat_db) for seat_db in self.db.scalars(query)]

    # --- moves ---
    def save_move(
        self,
        game_id: UUID,
        player_id: str,
        move: MovePayload,
        board_state_after: dict[str, Any],
        sequence: int,
    ) -> MoveRecord:
        record = MoveRecord(game_id, player_id, move, board_state_after, sequence)
        with self._transaction("save move"):
            self.db.add(self._to_db_move(record))
        return record

    def get_move_history(
        self, game_id: UUID, limit: Optional[int] = None
    ) -> list[MoveRecord]:
        query = select(DBMove).where(DBMove.game_id == game_id).order_by(DBMove.sequence)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_record(move_db) for move_db in self.db.scalars(query)]

    def commit_move(
        self, game: Game, record: MoveRecord, expected_version: int
    ) -> Game:
        fields = {
            "status": game.status,
            "current_player_id": game.current_player_id,
            "board_state": game.board_state,
            "move_count": game.move_count,
            "settings": game.settings,
        }
        conflict = ConcurrencyError(f"Move {record.sequence} of game {game.id} was already recorded")
        with self._transaction("commit move", on_conflict=conflict):
            self._write_game(game.id, fields, expected_version)
            self.db.add(self._to_db_move(record))
            self.db.flush()
        return self._require_game(game.id)

    # --- helpers ---
    def _write_game(
        self, game_id: UUID, fields: dict[str, Any], expected_version: Optional[int]
    ) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update game fields: {sorted(unknown)}")

        values = {key: str(value) if key == "status" else value for key, value in fields.items()}
        statement = (
            update(DBGame)
            .where(DBGame.id == game_id)
            .values(**values, version=DBGame.version + 1, updated_at=utc_now())
        )
        if expected_version is not None:
            statement = statement.where(DBGame.version == expected_version)

        result = self.db.execute(statement.execution_options(synchronize_session=False))
        if result.rowcount == 0:
            current = self.db.scalar(select(DBGame.version).where(DBGame.id == game_id))
            if current is None:
                raise NotFoundError(f"Game {game_id} not found")
            raise ConcurrencyError(
                f"Game {game_id} changed concurrently (expected version {expected_version}, found {current})"
            )

    def _fetch_game(self, game_id: UUID) -> Optional[DBGame]:
        return self.db.scalar(select(DBGame).where(DBGame.id == game_id))

    def _require_game(self, game_id: UUID) -> Game:
        self.db.expire_all()
        game_db = self._fetch_game(game_id)
        if game_db is None:
            raise NotFoundError(f"Game {game_id} not found")
        return self._to_model(game_db)

    @staticmethod
    def _to_model(game_db: DBGame) -> Game:
        """Convert SQLAlchemy model to the domain entity."""
        return Game(
            id=game_db.id,
            name=game_db.name,
            game_type=game_db.game_type,
            status=game_db.status,  # type: ignore[arg-type]
            current_player_id=game_db.current_player_id,
            board_state=game_db.board_state,
            move_count=game_db.move_count,
            min_seats=game_db.min_seats,
            max_seats=game_db.max_seats,
            settings=dict(game_db.settings or {}),
            created_at=_as_utc(game_db.created_at),
            updated_at=_as_utc(game_db.updated_at),
            version=game_db.version,
        )

    @staticmethod
    def _to_seat(seat_db: DBSeat) -> Seat:
        return Seat(
            user_id=seat_db.user_id,
            seat_order=seat_db.seat_order,
            role=seat_db.role,
            joined_at=_as_utc(seat_db.joined_at),
        )

    @staticmethod
    def _to_db_move(record: MoveRecord) -> DBMove:
        return DBMove(
            game_id=record.game_id,
            player_id=record.player_id,
            move=record.move,
            board_state_after=record.board_state_after,
            sequence=record.sequence,
            created_at=record.created_at,
        )

    @staticmethod
    def _to_record(move_db: DBMove) -> MoveRecord:
        return MoveRecord(
            game_id=move_db.game_id,
            player_id=move_db.player_id,
            move=move_db.move,
            board_state_after=move_db.board_state_after,
            sequence=move_db.sequence,
            created_at=_as_utc(move_db.created_at),
        )


class SQLUserRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def find_by_id(self, user_id: str) -> Optional[User]:
        user_db = self.db.scalar(select(DBUser).where(DBUser.id == user_id))
        return User(user_db.id, user_db.username) if user_db else None

    def create_user(self, username: str, user_id: Optional[str] = None) -> User:
        if not username or not username.strip():
            raise ValidationError("Username cannot be empty")
        user_db = DBUser(id=user_id or str(uuid4()), username=username.strip())
        self.db.add(user_db)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise StateError(f"Username {username!r} is already taken") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to create user: {exc}")
            raise PersistenceError("Failed to create user") from exc
        return User(user_db.id, user_db.username)
