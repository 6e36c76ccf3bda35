"""Conversion between the stored chess board state and FEN, the language of the rules oracle."""

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from gamehub.chess.board import Board, CastlingRights, ChessBoard
from gamehub.chess.fen import STARTING_FEN, FENState
from gamehub.chess.square import Square
from gamehub.core.exceptions import InvalidFENError


def board_to_fen(board: ChessBoard) -> str:
    state = FENState(
        placement=board.placement().to_placement(),
        active_color=board.color_to_move,
        castling_rights=board.castling_rights.to_directions(),
        en_passant_target=(
            Square.from_algebraic(board.en_passant_target)
            if board.en_passant_target
            else None
        ),
        halfmove_clock=board.halfmove_clock,
        fullmove_number=board.fullmove_number,
    )
    return state.to_fen()


def fen_to_board(
    fen: str,
    last_move: Optional[str] = None,
    result: Optional[str] = None,
    termination: Optional[str] = None,
) -> ChessBoard:
    """Raises InvalidFENError for strings that are not FEN."""
    state = FENState.from_fen(fen)
    try:
        return _build(state, last_move, result, termination)
    except PydanticValidationError as exc:
        raise InvalidFENError(f"FEN does not describe a playable position: {fen}") from exc


def _build(
    state: FENState,
    last_move: Optional[str],
    result: Optional[str],
    termination: Optional[str],
) -> ChessBoard:
    return ChessBoard(
        grid=Board.from_placement(state.placement).grid,
        active_color=state.active_color.value,
        castling_rights=CastlingRights.from_directions(state.castling_rights),
        en_passant_target=(
            state.en_passant_target.to_algebraic() if state.en_passant_target else None
        ),
        halfmove_clock=state.halfmove_clock,
        fullmove_number=state.fullmove_number,
        last_move=last_move,
        result=result,
        termination=termination,
    )


def starting_board() -> ChessBoard:
    return fen_to_board(STARTING_FEN)
