"""Chess piece types and colours, as they are written in FEN"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from gamehub.core.exceptions import ValidationError


class PieceType(StrEnum):
    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


class Color(StrEnum):
    WHITE = "w"
    BLACK = "b"

    @property
    def role(self) -> str:
        """Seat role playing this colour"""
        return "white" if self == Color.WHITE else "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


PIECE_LETTERS = frozenset(piece_type.value for piece_type in PieceType)

# The king has no material value
PIECE_POINTS: dict[PieceType, int] = {
    PieceType.PAWN: 1,
    PieceType.KNIGHT: 3,
    PieceType.BISHOP: 3,
    PieceType.ROOK: 5,
    PieceType.QUEEN: 9,
}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @property
    def points(self) -> int:
        return PIECE_POINTS.get(self.type, 0)

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # upper case: white, lower case: black
        if len(character) != 1 or character.lower() not in PIECE_LETTERS:
            raise ValidationError(f"Not a FEN piece letter: {character!r}")
        color = Color.WHITE if character.isupper() else Color.BLACK
        return cls(PieceType(character.lower()), color)

    def to_fen(self) -> str:
        letter = self.type.value
        return letter.upper() if self.color == Color.WHITE else letter


def is_piece_letter(character: str) -> bool:
    return len(character) == 1 and character.lower() in PIECE_LETTERS
