"""
A square on the chess board, and its place in the row-major grid of the board state.

Grid row 0 is the 8th rank and grid column 0 is the a-file, the same order FEN lists a position in.
"""

from dataclasses import dataclass
from string import ascii_lowercase
from typing import Self

from gamehub.core.exceptions import ValidationError

BOARD_SIZE = 8
FILES = ascii_lowercase[:BOARD_SIZE]


@dataclass(frozen=True)
class Square:
    file: int
    rank: int

    def __post_init__(self) -> None:
        if not self.is_within_bounds():
            raise ValidationError(f"Square out of bounds: file {self.file}, rank {self.rank}")

    @classmethod
    def from_algebraic(cls, sq: str) -> Self:
        """'a1' - 'h8' become (1, 1) - (8, 8)"""
        if not is_algebraic(sq):
            raise ValidationError(f"Not a square: {sq!r}")
        return cls(FILES.index(sq[0]) + 1, int(sq[1]))

    @classmethod
    def from_grid(cls, row: int, col: int) -> Self:
        return cls(col + 1, BOARD_SIZE - row)

    def to_algebraic(self) -> str:
        return f"{FILES[self.file - 1]}{self.rank}"

    def to_grid(self) -> tuple[int, int]:
        """(row, col) of this square in the board-state grid"""
        return BOARD_SIZE - self.rank, self.file - 1

    def is_within_bounds(self) -> bool:
        return 1 <= self.file <= BOARD_SIZE and 1 <= self.rank <= BOARD_SIZE


def is_algebraic(sq: str) -> bool:
    return (
        len(sq) == 2
        and sq[0] in FILES
        and sq[1].isdigit()
        and 1 <= int(sq[1]) <= BOARD_SIZE
    )
