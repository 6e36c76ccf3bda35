import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from gamehub.checkers.notation import (
    BOARD_SIZE,
    CheckersMove,
    parse_checkers_move,
    to_algebraic,
    to_grid,
)
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

Cell = Optional[Literal["r", "R", "b", "B"]]
Grid = list[list[Cell]]
PlayerColor = Literal["red", "black"]

# red starts on ranks 1-3 and moves toward row 0 (the 8th rank)
FORWARD: dict[str, int] = {"red": -1, "black": 1}
PROMOTION_ROW: dict[str, int] = {"red": 0, "black": BOARD_SIZE - 1}
ALL_DIRECTIONS = ((-1, -1), (-1, 1), (1, -1), (1, 1))


def color_of(cell: str) -> PlayerColor:
    return "red" if cell.lower() == "r" else "black"


def opponent_of(color: str) -> PlayerColor:
    return "black" if color == "red" else "red"


def is_king(cell: str) -> bool:
    return cell.isupper()


def _in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def starting_grid() -> Grid:
    grid: Grid = [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            # pieces only stand on the dark squares
            if (row + col) % 2 == 0:
                continue
            if row < 3:
                grid[row][col] = "b"
            elif row > 4:
                grid[row][col] = "r"
    return grid


class CheckersBoard(BaseModel):
    grid: Grid = Field(default_factory=starting_grid)
    current_color: PlayerColor = "red"
    move_count: int = Field(default=0, ge=0)
    # pieces of each colour that have been taken off the board
    captured_pieces: dict[str, int] = Field(default_factory=lambda: {"red": 0, "black": 0})
    last_move: Optional[str] = None
    forced_capture: bool = False

    @field_validator("grid")
    @classmethod
    def check_grid(cls, grid: Grid) -> Grid:
        if len(grid) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in grid):
            raise ValueError(f"Checkers grid must be {BOARD_SIZE}x{BOARD_SIZE}")
        for row_idx, row in enumerate(grid):
            for col_idx, cell in enumerate(row):
                if cell is not None and (row_idx + col_idx) % 2 == 0:
                    raise ValueError(f"Piece on a light square: {to_algebraic(row_idx, col_idx)}")
        return grid

    def cell(self, square: str) -> Cell:
        row, col = to_grid(square)
        return self.grid[row][col]

    def count(self, color: str) -> int:
        return sum(1 for row in self.grid for cell in row if cell and color_of(cell) == color)


@dataclass(frozen=True)
class LegalMove:
    origin: str
    path: tuple[str, ...]
    captures: tuple[str, ...] = ()

    @property
    def destination(self) -> str:
        return self.path[-1]

    def notation(self) -> str:
        separator = "x" if self.captures else "-"
        return separator.join((self.origin, *self.path))


def _step_directions(cell: str) -> list[tuple[int, int]]:
    if is_king(cell):
        return list(ALL_DIRECTIONS)
    forward = FORWARD[color_of(cell)]
    return [(forward, -1), (forward, 1)]


def _jump_sequences(
    grid: Grid, row: int, col: int, cell: str, taken: tuple[tuple[int, int], ...]
) -> list[tuple[list[tuple[int, int]], list[tuple[int, int]]]]:
    """Every maximal chain of jumps from (row, col). Men capture in all four directions."""
    sequences = []
    for d_row, d_col in ALL_DIRECTIONS:
        mid = (row + d_row, col + d_col)
        landing = (row + 2 * d_row, col + 2 * d_col)
        if not _in_bounds(*landing) or mid in taken:
            continue
        jumped = grid[mid[0]][mid[1]]
        if jumped is None or color_of(jumped) == color_of(cell):
            continue
        if grid[landing[0]][landing[1]] is not None:
            continue

        # promotion ends the move
        if not is_king(cell) and landing[0] == PROMOTION_ROW[color_of(cell)]:
            sequences.append(([landing], [mid]))
            continue

        continuations = _jump_sequences(grid, landing[0], landing[1], cell, taken + (mid,))
        if not continuations:
            sequences.append(([landing], [mid]))
        for path, captured in continuations:
            sequences.append(([landing, *path], [mid, *captured]))
    return sequences


def legal_moves(board: CheckersBoard, color: str) -> list[LegalMove]:
    jumps: list[LegalMove] = []
    steps: list[LegalMove] = []
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            cell = board.grid[row][col]
            if cell is None or color_of(cell) != color:
                continue
            origin = to_algebraic(row, col)

            # lift the piece so its own square counts as empty mid-chain
            lifted = [list(r) for r in board.grid]
            lifted[row][col] = None
            for path, captured in _jump_sequences(lifted, row, col, cell, ()):
                jumps.append(
                    LegalMove(
                        origin,
                        tuple(to_algebraic(*square) for square in path),
                        tuple(to_algebraic(*square) for square in captured),
                    )
                )

            for d_row, d_col in _step_directions(cell):
                target = (row + d_row, col + d_col)
                if _in_bounds(*target) and board.grid[target[0]][target[1]] is None:
                    steps.append(LegalMove(origin, (to_algebraic(*target),)))

    if board.forced_capture and jumps:
        return jumps
    return jumps + steps


class CheckersPlugin(GamePlugin[CheckersBoard]):
    """
    Two-player checkers on the dark squares of an 8x8 board. Red (seat 1) moves first.

    Men step diagonally forward and capture in any diagonal direction; jumps chain until no
    further capture is possible, and reaching the far row crowns the man and ends the move.

    Settings:
        forced_capture: when true, a capture must be taken if one is available (default false)
    """

    game_type = GameType.CHECKERS
    display_name = "Checkers"
    description = "Classic two-player checkers game with jumping and king promotion"
    min_seats = 2
    max_seats = 2
    roles = ("red", "black")
    complexity = "Medium"
    categories = ("Strategy", "Board Game", "Classic")
    board_model = CheckersBoard

    def initial_board_state(self, settings: dict[str, Any]) -> CheckersBoard:
        return CheckersBoard(forced_capture=bool(settings.get("forced_capture", False)))

    def parse_move(self, raw: MovePayload) -> CheckersMove:
        return parse_checkers_move(raw)

    def validate_move(
        self, move: Any, board: CheckersBoard, player_id: str, seats: Sequence[Seat]
    ) -> MoveValidation:
        if not isinstance(move, CheckersMove):
            return MoveValidation.reject(
                "Invalid move format. Expected object with from/to properties."
            )

        seat = seat_of(seats, player_id)
        if seat is None:
            return MoveValidation.reject("Player not in game")
        if seat.role != board.current_color:
            return MoveValidation.reject(f"It is {board.current_color}'s turn to move")

        piece = board.cell(move.origin)
        if piece is None:
            return MoveValidation.reject("No piece at source position")
        if color_of(piece) != board.current_color:
            return MoveValidation.reject("Cannot move opponent's piece")
        if board.cell(move.destination) is not None:
            return MoveValidation.reject("Destination square is occupied")

        try:
            self._resolve(move, board)
        except ValidationError as exc:
            return MoveValidation.reject(str(exc))
        return MoveValidation.accept()

    def _resolve(self, move: CheckersMove, board: CheckersBoard) -> LegalMove:
        """The legal move the player meant. Raises ValidationError explaining why there is none."""
        available = legal_moves(board, board.current_color)
        candidates = [
            legal
            for legal in available
            if legal.origin == move.origin
            and legal.destination == move.destination
            and (len(move.path) <= 1 or legal.path == move.path)
        ]

        if not candidates:
            raise ValidationError(self._explain_illegal(move, board, available))
        if len(candidates) > 1:
            routes = ", ".join(legal.notation() for legal in candidates)
            raise ValidationError(f"Ambiguous capture route, give the full path: {routes}")

        chosen = candidates[0]
        if move.captures and set(move.captures) != set(chosen.captures):
            raise ValidationError("Capture count mismatch")
        return chosen

    @staticmethod
    def _explain_illegal(
        move: CheckersMove, board: CheckersBoard, available: list[LegalMove]
    ) -> str:
        from_row, from_col = to_grid(move.origin)
        to_row, to_col = to_grid(move.destination)
        d_row, d_col = to_row - from_row, to_col - from_col

        if abs(d_row) != abs(d_col) or d_row == 0:
            return "Pieces must move diagonally"

        for legal in available:
            if legal.origin == move.origin and legal.captures and move.destination in legal.path:
                return f"Jump sequence must continue: {legal.notation()}"

        if board.forced_capture and any(legal.captures for legal in available):
            return "A capture is available and must be taken"

        piece = board.cell(move.origin)
        if abs(d_row) == 1:
            assert piece is not None
            if not is_king(piece) and d_row != FORWARD[color_of(piece)]:
                return f"{color_of(piece).capitalize()} pieces can only move forward (unless capturing)"
        if abs(d_row) % 2 == 0:
            return "Multi-step moves must capture pieces"
        return "Invalid move distance"

    def apply_move(
        self, move: Any, board: CheckersBoard, player_id: str, seats: Sequence[Seat]
    ) -> CheckersBoard:
        validation = self.validate_move(move, board, player_id, seats)
        if not validation.ok:
            raise ValidationError(validation.error or "Invalid move")
        legal = self._resolve(move, board)

        grid = [list(row) for row in board.grid]
        captured_pieces = dict(board.captured_pieces)
        from_row, from_col = to_grid(legal.origin)
        to_row, to_col = to_grid(legal.destination)

        piece = grid[from_row][from_col]
        assert piece is not None
        grid[from_row][from_col] = None
        for square in legal.captures:
            row, col = to_grid(square)
            taken = grid[row][col]
            if taken:
                captured_pieces[color_of(taken)] += 1
                grid[row][col] = None

        if not is_king(piece) and to_row == PROMOTION_ROW[color_of(piece)]:
            piece = piece.upper()
        grid[to_row][to_col] = piece  # type: ignore[assignment]

        return board.model_copy(
            update={
                "grid": grid,
                "current_color": opponent_of(board.current_color),
                "move_count": board.move_count + 1,
                "captured_pieces": captured_pieces,
                "last_move": legal.notation(),
            }
        )

    def is_complete(self, board: CheckersBoard, seats: Sequence[Seat]) -> bool:
        color = board.current_color
        return board.count(color) == 0 or not legal_moves(board, color)

    def winner(self, board: CheckersBoard, seats: Sequence[Seat]) -> Optional[str]:
        if not self.is_complete(board, seats):
            return None
        # the side that cannot move loses
        seat = seat_by_role(seats, opponent_of(board.current_color))
        return seat.user_id if seat else None

    def next_player(
        self, current_player_id: str, seats: Sequence[Seat], board: CheckersBoard
    ) -> str:
        seat = seat_by_role(seats, board.current_color)
        return seat.user_id if seat else rotate_seats(current_player_id, seats)

    def render_projection(
        self, board: CheckersBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        return {
            "board": board.grid,
            "current_player": board.current_color,
            "move_count": board.move_count,
            "captured_pieces": board.captured_pieces,
            "last_move": board.last_move,
        }

    def stats_projection(
        self, board: CheckersBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        return super().stats_projection(board, seats) | {
            "move_count": board.move_count,
            "pieces_remaining": {"red": board.count("red"), "black": board.count("black")},
            "captured_pieces": board.captured_pieces,
            "current_player": board.current_color,
        }
