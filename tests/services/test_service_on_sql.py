"""Tests of gamehub/services/game_service.py wired to the SQL repositories (build_game_service)."""

from uuid import UUID

import pytest
from sqlalchemy.orm import Session

from conftest import RecordingNotifier
from gamehub.api.models import CreateGameRequest, JoinGameRequest, MoveRequest
from gamehub.core.config import Settings
from gamehub.core.exceptions import ConcurrencyError, StateError
from gamehub.core.models import MoveRecord
from gamehub.core.shared_types import GameStatus
from gamehub.db.sql_repository import SQLGameRepository, SQLUserRepository
from gamehub.services.game_service import GameService, build_game_service


@pytest.fixture
def service(db_session: Session, settings: Settings, notifier: RecordingNotifier) -> GameService:
    users = SQLUserRepository(db_session)
    for name in ("alice", "bob"):
        users.create_user(name, user_id=name)
    return build_game_service(db_session, settings, notifier)


def start_chess(service: GameService) -> UUID:
    created = service.create_game(CreateGameRequest(name="club night", game_type="chess", creator_id="alice"))
    service.join_game(created.id, JoinGameRequest(user_id="bob"))
    return created.id


def test_two_player_chess_opening(service: GameService) -> None:
    created = service.create_game(CreateGameRequest(name="club night", game_type="chess", creator_id="alice"))
    assert created.status == GameStatus.WAITING
    assert len(service.get_game_players(created.id)) == 1

    joined = service.join_game(created.id, JoinGameRequest(user_id="bob"))
    assert joined.game_status == GameStatus.ACTIVE
    assert service.get_game_state(created.id).current_player_id == "alice"

    response = service.make_move(created.id, MoveRequest(user_id="alice", move="e2-e4"))
    assert response.move_count == 1
    assert response.next_player_id == "bob"

    with pytest.raises(StateError, match="Not your turn"):
        service.make_move(created.id, MoveRequest(user_id="alice", move="d2d4"))

    state = service.get_game_state(created.id)
    assert [seat.username for seat in state.seats] == ["alice", "bob"]
    assert state.render_data["last_move"] == "e4"


def test_concurrent_moves_from_one_read(service: GameService, db_session: Session) -> None:
    """Two writers holding the same snapshot: the second commit is refused and nothing of it is stored."""
    game_id = start_chess(service)
    repo = SQLGameRepository(db_session)
    game = repo.find_by_id(game_id)
    assert game is not None
    plugin = service.registry.get("chess")
    seats = repo.get_players(game_id)

    def commit(text: str) -> None:
        board = plugin.apply_move(text, plugin.deserialize(game.board_state), "alice", seats)
        updated = game.make_move("bob", plugin.serialize(board))
        record = MoveRecord(game_id, "alice", text, updated.board_state, updated.move_count)
        repo.commit_move(updated, record, expected_version=game.version)

    commit("e2e4")
    with pytest.raises(ConcurrencyError):
        commit("d2d4")

    assert service.get_game_state(game_id).move_count == 1
    assert [record.move for record in service.get_move_history(game_id)] == ["e2e4"]


def test_structured_move_is_stored_as_sent(service: GameService, db_session: Session, settings: Settings) -> None:
    game_id = start_chess(service)
    service.make_move(game_id, MoveRequest(user_id="alice", move={"from": "e2", "to": "e4"}))

    reopened = build_game_service(db_session, settings)  # fresh plugin registry, same database
    history = reopened.get_move_history(game_id)
    assert history[0].move == {"from": "e2", "to": "e4"}
    assert reopened.get_game_state(game_id).render_data["active_color"] == "black"
