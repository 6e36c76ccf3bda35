import logging
from typing import Any, Optional, Sequence

from gamehub.chess.board import ChessBoard
from gamehub.chess.fen import STARTING_FEN
from gamehub.chess.oracle import RulesOracle
from gamehub.chess.pieces import Color
from gamehub.chess.translate import board_to_fen, fen_to_board
from gamehub.core.exceptions import ValidationError
from gamehub.core.models import MovePayload, Seat
from gamehub.core.shared_types import GameType
from gamehub.plugins.base import (
    GamePlugin,
    MoveValidation,
    rotate_seats,
    seat_by_role,
    seat_of,
)

logger = logging.getLogger(__name__)


class ChessPlugin(GamePlugin[ChessBoard]):
    """
    Two-player chess. Legality, check and game end are decided by the rules oracle; this class only
    translates between the stored board and FEN and maps colours onto seats.

    Settings:
        fen: optional starting position (defaults to the standard one)
    """

    game_type = GameType.CHESS
    display_name = "Chess"
    description = "Classic two-player chess game with full rule validation"
    min_seats = 2
    max_seats = 2
    roles = ("white", "black")
    complexity = "High"
    categories = ("Strategy", "Board Game", "Classic")
    board_model = ChessBoard

    def __init__(self, oracle: RulesOracle) -> None:
        self.oracle = oracle

    def initial_board_state(self, settings: dict[str, Any]) -> ChessBoard:
        fen = settings.get("fen") or STARTING_FEN
        board = fen_to_board(fen)
        outcome = self.oracle.outcome(fen)
        if outcome is not None:
            raise ValidationError(
                f"Starting position is already decided ({outcome.termination} {outcome.result})"
            )
        return board

    def first_player(self, seats: Sequence[Seat], board: ChessBoard) -> str:
        """The seat playing the colour the starting position has to move."""
        seat = seat_by_role(seats, board.color_to_move.role)
        return seat.user_id if seat else super().first_player(seats, board)

    def parse_move(self, raw: MovePayload) -> str:
        """Text moves pass through; {"from": "e7", "to": "e8", "promotion": "q"} becomes 'e7e8q'."""
        if isinstance(raw, dict):
            origin, destination = raw.get("from"), raw.get("to")
            if not isinstance(origin, str) or not isinstance(destination, str):
                raise ValidationError("Invalid move format")
            return f"{origin}{destination}{raw.get('promotion') or ''}".strip()
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("Invalid move format")
        return raw.strip()

    def validate_move(
        self, move: Any, board: ChessBoard, player_id: str, seats: Sequence[Seat]
    ) -> MoveValidation:
        if not isinstance(move, str) or not move:
            return MoveValidation.reject("Invalid move format")

        seat = seat_of(seats, player_id)
        if seat is None:
            return MoveValidation.reject("Player not in game")

        if board.is_over:
            return MoveValidation.reject(f"Game is over ({board.result})")

        to_move = board.color_to_move.role
        if seat.role != to_move:
            return MoveValidation.reject(f"It is {to_move}'s turn to move")

        result = self.oracle.play(board_to_fen(board), move)
        if not result.legal:
            return MoveValidation.reject(result.error or f"Illegal move: {move}")
        return MoveValidation.accept()

    def apply_move(
        self, move: Any, board: ChessBoard, player_id: str, seats: Sequence[Seat]
    ) -> ChessBoard:
        validation = self.validate_move(move, board, player_id, seats)
        if not validation.ok:
            raise ValidationError(validation.error or "Invalid move")

        result = self.oracle.play(board_to_fen(board), move)
        assert result.fen is not None
        outcome = self.oracle.outcome(result.fen)
        if outcome is not None:
            logger.debug(f"Chess game over: {outcome.termination} {outcome.result}")
        return fen_to_board(
            result.fen,
            last_move=result.san,
            result=outcome.result if outcome else None,
            termination=outcome.termination if outcome else None,
        )

    def is_complete(self, board: ChessBoard, seats: Sequence[Seat]) -> bool:
        return board.is_over

    def winner(self, board: ChessBoard, seats: Sequence[Seat]) -> Optional[str]:
        winning_color = {"1-0": Color.WHITE, "0-1": Color.BLACK}.get(board.result or "")
        if winning_color is None:
            return None
        seat = seat_by_role(seats, winning_color.role)
        return seat.user_id if seat else None

    def next_player(
        self, current_player_id: str, seats: Sequence[Seat], board: ChessBoard
    ) -> str:
        seat = seat_by_role(seats, board.color_to_move.role)
        return seat.user_id if seat else rotate_seats(current_player_id, seats)

    def render_projection(
        self, board: ChessBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        return {
            "board": board.grid,
            "orientation": "white",
            "active_color": board.color_to_move.role,
            "last_move": board.last_move,
            "fen": board_to_fen(board),
        }

    def stats_projection(
        self, board: ChessBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        placement = board.placement()
        return super().stats_projection(board, seats) | {
            "move_number": board.fullmove_number,
            "piece_count": placement.count_pieces(),
            "material": placement.count_material(),
            "in_check": self.oracle.is_check(board_to_fen(board)),
            "result": board.result,
        }
