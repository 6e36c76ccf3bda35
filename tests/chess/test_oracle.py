"""Unit tests for gamehub/chess/oracle.py"""

import pytest

from gamehub.chess.fen import STARTING_FEN
from gamehub.chess.oracle import NOTATION_HINT, PythonChessOracle
from gamehub.chess.pieces import Color
from gamehub.core.exceptions import InvalidFENError

# white to play Qxf7#
SCHOLARS_MATE_SETUP = "r1bqkbnr/pppp1ppp/2n5/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4"
PROMOTION_SETUP = "8/4P1k1/8/8/8/8/8/4K3 w - - 0 1"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"


@pytest.fixture
def oracle() -> PythonChessOracle:
    return PythonChessOracle()


@pytest.mark.parametrize("move", ["e2-e4", "e2e4", "e4", "e2 - e4"])
def test_accepts_coordinate_and_san(oracle: PythonChessOracle, move: str) -> None:
    result = oracle.play(STARTING_FEN, move)
    assert result.legal
    assert result.san == "e4"
    # the skipped square is always written out
    assert result.fen == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_knight_move_in_san(oracle: PythonChessOracle) -> None:
    result = oracle.play(STARTING_FEN, "Nf3")
    assert result.legal
    assert result.san == "Nf3"


@pytest.mark.parametrize("move", ["e2-e5", "Ke2", "e7e5"])
def test_illegal_move(oracle: PythonChessOracle, move: str) -> None:
    result = oracle.play(STARTING_FEN, move)
    assert not result.legal
    assert result.error == f"Illegal move: {move}"


@pytest.mark.parametrize("move", ["hello", "z9-z1", "e2_e4", ""])
def test_unreadable_move(oracle: PythonChessOracle, move: str) -> None:
    result = oracle.play(STARTING_FEN, move)
    assert not result.legal
    assert result.error == NOTATION_HINT


def test_ambiguous_move(oracle: PythonChessOracle) -> None:
    fen = "4k3/8/8/8/8/8/4K3/R6R w - - 0 1"
    result = oracle.play(fen, "Rd1")
    assert not result.legal
    assert result.error is not None
    assert result.error.startswith("Ambiguous move: Rd1")


def test_coordinate_promotion_defaults_to_queen(oracle: PythonChessOracle) -> None:
    result = oracle.play(PROMOTION_SETUP, "e7-e8")
    assert result.legal
    assert result.san is not None
    assert result.san.startswith("e8=Q")


def test_underpromotion(oracle: PythonChessOracle) -> None:
    result = oracle.play(PROMOTION_SETUP, "e7e8n")
    assert result.legal
    assert result.san is not None
    assert result.san.startswith("e8=N")


def test_checkmate_outcome(oracle: PythonChessOracle) -> None:
    result = oracle.play(SCHOLARS_MATE_SETUP, "Qxf7#")
    assert result.legal and result.fen is not None
    outcome = oracle.outcome(result.fen)
    assert outcome is not None
    assert outcome.result == "1-0"
    assert outcome.winner == Color.WHITE
    assert outcome.termination == "checkmate"
    assert oracle.is_check(result.fen)


def test_stalemate_outcome(oracle: PythonChessOracle) -> None:
    outcome = oracle.outcome(STALEMATE)
    assert outcome is not None
    assert outcome.result == "1/2-1/2"
    assert outcome.winner is None
    assert outcome.termination == "stalemate"


def test_no_outcome_in_progress(oracle: PythonChessOracle) -> None:
    assert oracle.outcome(STARTING_FEN) is None


def test_legal_moves(oracle: PythonChessOracle) -> None:
    moves = oracle.legal_moves(STARTING_FEN)
    assert len(moves) == 20
    assert "e2e4" in moves


def test_bad_fen(oracle: PythonChessOracle) -> None:
    with pytest.raises(InvalidFENError):
        oracle.play("not a fen", "e4")
