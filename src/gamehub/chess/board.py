"""
Chess board state as the plugin stores it, and the placement grid behind it.

The grid is 8 rows of 8 cells holding a FEN piece letter or None. Row 0 is the 8th rank,
column 0 the a-file.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Self

from pydantic import BaseModel, Field, field_validator

from gamehub.chess.fen import CastlingDirection
from gamehub.chess.pieces import Color, Piece, PieceType, is_piece_letter
from gamehub.chess.square import BOARD_SIZE, Square, is_algebraic

Grid = list[list[Optional[str]]]


@dataclass
class Board:
    grid: Grid

    @classmethod
    def from_placement(cls, placement: str) -> Self:
        """
        Build the grid from the placement field of a FEN string.

        ex) rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        * the first rank listed is the 8th, so it becomes row 0
        * within a rank, letters are read from the a-file onwards
        * a digit stands for that many empty squares
        """
        grid: Grid = []
        for rank_fen in placement.split("/"):
            row: list[Optional[str]] = []
            for character in rank_fen:
                if character.isdigit():
                    row.extend([None] * int(character))
                else:
                    row.append(character)
            grid.append(row)
        return cls(grid)

    def to_placement(self) -> str:
        return "/".join(self._row_to_fen(row) for row in self.grid)

    @staticmethod
    def _row_to_fen(row: list[Optional[str]]) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for cell in row:
            if cell is None:
                empty_count += 1
                continue
            if empty_count:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(cell)
        # a fully empty rank still gets its number
        if empty_count:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Optional[Piece]:
        row, col = square.to_grid()
        cell = self.grid[row][col]
        return Piece.from_fen(cell) if cell else None

    def pieces(self) -> list[Piece]:
        return [Piece.from_fen(cell) for row in self.grid for cell in row if cell]

    def locate(self, piece: Piece) -> list[Square]:
        letter = piece.to_fen()
        return [
            Square.from_grid(row_idx, col_idx)
            for row_idx, row in enumerate(self.grid)
            for col_idx, cell in enumerate(row)
            if cell == letter
        ]

    def count_pieces(self) -> dict[str, int]:
        counts = {"white": 0, "black": 0}
        for piece in self.pieces():
            counts[piece.color.role] += 1
        counts["total"] = counts["white"] + counts["black"]
        return counts

    def count_material(self) -> dict[str, int]:
        """Tally material points per colour (kings do not count)"""
        material = {"white": 0, "black": 0}
        for piece in self.pieces():
            material[piece.color.role] += piece.points
        return material


class CastlingRights(BaseModel):
    white_kingside: bool = True
    white_queenside: bool = True
    black_kingside: bool = True
    black_queenside: bool = True

    @classmethod
    def from_directions(cls, rights: dict[CastlingDirection, bool]) -> Self:
        return cls(**{direction.key: rights.get(direction, False) for direction in CastlingDirection})

    def to_directions(self) -> dict[CastlingDirection, bool]:
        return {direction: getattr(self, direction.key) for direction in CastlingDirection}


class ChessBoard(BaseModel):
    grid: Grid
    active_color: Literal["w", "b"] = "w"
    castling_rights: CastlingRights = Field(default_factory=CastlingRights)
    en_passant_target: Optional[str] = None
    halfmove_clock: int = Field(default=0, ge=0)
    fullmove_number: int = Field(default=1, ge=1)
    last_move: Optional[str] = None
    # "1-0", "0-1" or "1/2-1/2" once the game is over
    result: Optional[str] = None
    termination: Optional[str] = None

    @field_validator("grid")
    @classmethod
    def check_grid(cls, grid: Grid) -> Grid:
        if len(grid) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in grid):
            raise ValueError(f"Chess grid must be {BOARD_SIZE}x{BOARD_SIZE}")
        for row in grid:
            for cell in row:
                if cell is not None and not is_piece_letter(cell):
                    raise ValueError(f"Unknown piece letter in grid: {cell!r}")
        for king in ("K", "k"):
            if sum(row.count(king) for row in grid) != 1:
                raise ValueError(f"Grid must hold exactly one {king!r}")
        return grid

    @field_validator("en_passant_target")
    @classmethod
    def check_en_passant(cls, target: Optional[str]) -> Optional[str]:
        if target is not None and not is_algebraic(target):
            raise ValueError(f"Invalid en passant target: {target!r}")
        return target

    @property
    def color_to_move(self) -> Color:
        return Color(self.active_color)

    @property
    def is_over(self) -> bool:
        return self.result is not None

    def placement(self) -> Board:
        return Board([list(row) for row in self.grid])

    def kings(self) -> dict[str, Optional[Square]]:
        board = self.placement()
        return {
            color.role: next(iter(board.locate(Piece(PieceType.KING, color))), None)
            for color in Color
        }
