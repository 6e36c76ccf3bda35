"""Unit tests for gamehub/db/sql_repository.py"""

from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from gamehub.core.exceptions import ConcurrencyError, NotFoundError, StateError, ValidationError
from gamehub.core.models import GameCriteria, MoveRecord
from gamehub.core.shared_types import GameStatus
from gamehub.db.sql_repository import SQLGameRepository, SQLUserRepository
from gamehub.domain.game import Game

BOARD: dict[str, Any] = {"fen": "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"}


def new_game(**fields: Any) -> Game:
    values: dict[str, Any] = {
        "name": "Friday night",
        "game_type": "chess",
        "board_state": BOARD,
        "min_seats": 2,
        "max_seats": 2,
    }
    values.update(fields)
    return Game(**values)


@pytest.fixture
def repo(db_session: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session)


# --- games ---
def test_save_and_find_game(repo: SQLGameRepository) -> None:
    game = new_game(settings={"time_control": "5+3"})

    saved = repo.save(game)
    found = repo.find_by_id(game.id)

    assert saved.id == game.id
    assert found is not None
    assert found.name == "Friday night"
    assert found.status == GameStatus.WAITING
    assert found.board_state == BOARD
    assert found.settings == {"time_control": "5+3"}
    assert found.version == 0
    assert found.created_at.tzinfo is not None


def test_find_unknown_game(repo: SQLGameRepository) -> None:
    assert repo.find_by_id(uuid4()) is None


def test_find_by_criteria(repo: SQLGameRepository) -> None:
    chess = repo.save(new_game(name="chess one"))
    checkers = repo.save(new_game(name="checkers one", game_type="checkers"))
    repo.save(new_game(name="chess two"))
    repo.add_player(checkers.id, "alice", 1, "red")
    repo.update(chess.id, {"status": GameStatus.ACTIVE, "current_player_id": "bob"})

    assert {game.name for game in repo.find_by_criteria(GameCriteria(game_type="chess"))} == {
        "chess one",
        "chess two",
    }
    assert [game.name for game in repo.find_by_criteria(GameCriteria(status=GameStatus.ACTIVE))] == [
        "chess one"
    ]
    assert [game.name for game in repo.find_by_criteria(GameCriteria(player_id="alice"))] == [
        "checkers one"
    ]
    assert len(repo.find_by_criteria(GameCriteria(limit=2))) == 2
    assert repo.find_by_criteria(GameCriteria(game_type="chess", player_id="alice")) == []


def test_update_bumps_version(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())

    updated = repo.update(game.id, {"status": GameStatus.ACTIVE, "current_player_id": "alice"})

    assert updated.status == GameStatus.ACTIVE
    assert updated.current_player_id == "alice"
    assert updated.version == game.version + 1


def test_update_with_stale_version(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    repo.update(game.id, {"name": "renamed"}, expected_version=game.version)

    with pytest.raises(ConcurrencyError):
        repo.update(game.id, {"name": "renamed again"}, expected_version=game.version)

    stored = repo.find_by_id(game.id)
    assert stored is not None
    assert stored.name == "renamed"


def test_update_unknown_game(repo: SQLGameRepository) -> None:
    with pytest.raises(NotFoundError):
        repo.update(uuid4(), {"name": "ghost"})


def test_update_rejects_unknown_fields(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    with pytest.raises(ValidationError, match="Cannot update game fields"):
        repo.update(game.id, {"version": 99})


def test_delete_game(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    repo.add_player(game.id, "alice", 1, "white")

    assert repo.delete(game.id)
    assert repo.find_by_id(game.id) is None
    assert repo.get_players(game.id) == []
    assert not repo.delete(game.id)


# --- seats ---
def test_seats_come_back_in_order(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    repo.add_player(game.id, "bob", 2, "black")
    repo.add_player(game.id, "alice", 1, "white")

    seats = repo.get_players(game.id)

    assert [(seat.user_id, seat.seat_order, seat.role) for seat in seats] == [
        ("alice", 1, "white"),
        ("bob", 2, "black"),
    ]


@pytest.mark.parametrize("user_id, seat_order", [("alice", 2), ("bob", 1)])
def test_duplicate_seat_rejected(repo: SQLGameRepository, user_id: str, seat_order: int) -> None:
    game = repo.save(new_game())
    repo.add_player(game.id, "alice", 1, "white")

    with pytest.raises(StateError):
        repo.add_player(game.id, user_id, seat_order, "black")

    # the session is still usable after the rollback
    assert len(repo.get_players(game.id)) == 1


# --- moves ---
def test_commit_move_writes_game_and_record(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    game = repo.update(game.id, {"status": GameStatus.ACTIVE, "current_player_id": "alice"})
    after = {"fen": "after e4"}
    moved = game.make_move("bob", after)
    record = MoveRecord(game.id, "alice", "e2e4", after, moved.move_count)

    committed = repo.commit_move(moved, record, expected_version=game.version)

    assert committed.move_count == 1
    assert committed.current_player_id == "bob"
    assert committed.board_state == after
    assert committed.version == game.version + 1
    history = repo.get_move_history(game.id)
    assert [(entry.sequence, entry.player_id, entry.move) for entry in history] == [(1, "alice", "e2e4")]


def test_commit_move_from_stale_read_writes_nothing(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    game = repo.update(game.id, {"status": GameStatus.ACTIVE, "current_player_id": "alice"})
    first = game.make_move("bob", {"fen": "first"})
    second = game.make_move("bob", {"fen": "second"})
    repo.commit_move(first, MoveRecord(game.id, "alice", "e2e4", first.board_state, 1), game.version)

    with pytest.raises(ConcurrencyError):
        repo.commit_move(second, MoveRecord(game.id, "alice", "d2d4", second.board_state, 1), game.version)

    stored = repo.find_by_id(game.id)
    assert stored is not None
    assert stored.move_count == 1
    assert stored.board_state == {"fen": "first"}
    assert len(repo.get_move_history(game.id)) == 1


def test_move_history_order_and_limit(repo: SQLGameRepository) -> None:
    game = repo.save(new_game())
    for sequence, move in [(2, "e7e5"), (1, "e2e4"), (3, {"from": "g1", "to": "f3"})]:
        repo.save_move(game.id, "alice", move, {"step": sequence}, sequence)

    history = repo.get_move_history(game.id)
    assert [entry.sequence for entry in history] == [1, 2, 3]
    assert history[2].move == {"from": "g1", "to": "f3"}
    assert [entry.move for entry in repo.get_move_history(game.id, limit=2)] == ["e2e4", "e7e5"]


# --- users ---
def test_create_and_find_user(db_session: Session) -> None:
    users = SQLUserRepository(db_session)
    created = users.create_user("  alice ", user_id="u-1")

    assert created.username == "alice"
    assert users.find_by_id("u-1") == created
    assert users.find_by_id("nobody") is None


def test_user_gets_generated_id(db_session: Session) -> None:
    users = SQLUserRepository(db_session)
    assert users.create_user("bob").id


def test_duplicate_username_rejected(db_session: Session) -> None:
    users = SQLUserRepository(db_session)
    users.create_user("alice")
    with pytest.raises(StateError, match="already taken"):
        users.create_user("alice")


def test_empty_username_rejected(db_session: Session) -> None:
    with pytest.raises(ValidationError):
        SQLUserRepository(db_session).create_user("  ")
