"""Unit tests for gamehub/chess/plugin.py"""

import pytest

from gamehub.chess.board import ChessBoard
from gamehub.chess.oracle import NOTATION_HINT, PythonChessOracle
from gamehub.chess.plugin import ChessPlugin
from gamehub.core.exceptions import InvalidFENError, ValidationError
from gamehub.core.models import Seat

FOOLS_MATE_SETUP = "rnbqkbnr/pppp1ppp/8/4p3/6P1/5P2/PPPPP2P/RNBQKBNR b KQkq - 0 2"


@pytest.fixture
def plugin() -> ChessPlugin:
    return ChessPlugin(PythonChessOracle())


@pytest.fixture
def seats() -> list[Seat]:
    return [Seat("alice", 1, "white"), Seat("bob", 2, "black")]


def test_roles(plugin: ChessPlugin) -> None:
    assert plugin.assign_seat_role(1, 2) == "white"
    assert plugin.assign_seat_role(2, 2) == "black"


def test_custom_starting_position(plugin: ChessPlugin) -> None:
    board = plugin.initial_board_state({"fen": FOOLS_MATE_SETUP})
    assert board.active_color == "b"


def test_invalid_starting_position(plugin: ChessPlugin) -> None:
    with pytest.raises(InvalidFENError):
        plugin.initial_board_state({"fen": "garbage"})


def test_decided_starting_position(plugin: ChessPlugin) -> None:
    mated = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
    with pytest.raises(ValidationError, match=r"already decided \(checkmate 0-1\)"):
        plugin.initial_board_state({"fen": mated})


def test_first_player_follows_the_side_to_move(plugin: ChessPlugin, seats: list[Seat]) -> None:
    assert plugin.first_player(seats, plugin.initial_board_state({})) == "alice"
    assert plugin.first_player(seats, plugin.initial_board_state({"fen": FOOLS_MATE_SETUP})) == "bob"


@pytest.mark.parametrize(
    "raw, parsed",
    [
        ("  e2-e4 ", "e2-e4"),
        ({"from": "e2", "to": "e4"}, "e2e4"),
        ({"from": "e7", "to": "e8", "promotion": "q"}, "e7e8q"),
    ],
)
def test_parse_move(plugin: ChessPlugin, raw: str | dict[str, str], parsed: str) -> None:
    assert plugin.parse_move(raw) == parsed


@pytest.mark.parametrize("raw", ["", "   ", {"from": "e2"}, {"to": 4}])
def test_parse_bad_move(plugin: ChessPlugin, raw: str | dict[str, object]) -> None:
    with pytest.raises(ValidationError, match="Invalid move format"):
        plugin.parse_move(raw)  # type: ignore[arg-type]


def test_opening_move(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    assert plugin.validate_move("e2-e4", board, "alice", seats).ok

    after = plugin.apply_move("e2-e4", board, "alice", seats)
    assert after.last_move == "e4"
    assert after.active_color == "b"
    assert after.en_passant_target == "e3"
    assert after.grid[4][4] == "P"
    assert after.grid[6][4] is None
    # input board untouched
    assert board.grid[6][4] == "P"
    assert plugin.next_player("alice", seats, after) == "bob"
    assert not plugin.is_complete(after, seats)


def test_wrong_colour(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    validation = plugin.validate_move("e7-e5", board, "bob", seats)
    assert not validation.ok
    assert validation.error == "It is white's turn to move"


def test_not_seated(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    validation = plugin.validate_move("e2-e4", board, "mallory", seats)
    assert validation.error == "Player not in game"


def test_oracle_error_is_passed_through(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    assert plugin.validate_move("hello", board, "alice", seats).error == NOTATION_HINT
    assert plugin.validate_move("e2-e5", board, "alice", seats).error == "Illegal move: e2-e5"


def test_apply_rejects_illegal_move(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    with pytest.raises(ValidationError, match="Illegal move"):
        plugin.apply_move("e2-e5", board, "alice", seats)


def test_checkmate_completes_game(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({"fen": FOOLS_MATE_SETUP})
    after = plugin.apply_move("Qh4#", board, "bob", seats)
    assert after.result == "0-1"
    assert after.termination == "checkmate"
    assert plugin.is_complete(after, seats)
    assert plugin.winner(after, seats) == "bob"
    assert plugin.validate_move("e2-e4", after, "alice", seats).error == "Game is over (0-1)"


def test_draw_has_no_winner(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    drawn = board.model_copy(update={"result": "1/2-1/2", "termination": "stalemate"})
    assert plugin.is_complete(drawn, seats)
    assert plugin.winner(drawn, seats) is None


def test_projections(plugin: ChessPlugin, seats: list[Seat]) -> None:
    board = plugin.initial_board_state({})
    render = plugin.render_projection(board, seats)
    assert render["active_color"] == "white"
    assert render["fen"] == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

    stats = plugin.stats_projection(board, seats)
    assert stats["game_type"] == "chess"
    assert stats["piece_count"]["total"] == 32
    assert stats["in_check"] is False
    assert stats["result"] is None


def test_board_serialization(plugin: ChessPlugin) -> None:
    board = plugin.initial_board_state({})
    assert plugin.deserialize(plugin.serialize(board)) == board


def test_deserialize_rejects_corrupt_payload(plugin: ChessPlugin) -> None:
    with pytest.raises(ValidationError, match="Invalid chess board state"):
        plugin.deserialize({"grid": [[None] * 8] * 8})
    assert isinstance(plugin.initial_board_state({}), ChessBoard)
