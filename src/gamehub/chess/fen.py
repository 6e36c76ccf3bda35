"""
FEN (Forsyth-Edwards Notation) parsing and rendering.

<placement> <active colour> <castling rights> <en passant target> <halfmove clock> <fullmove number>

* placement: ranks 8 down to 1 separated by '/', piece letters (upper case white) and digits for runs of empty squares
* active colour: "w" or "b"
* castling rights: any of "KQkq" in that order, or "-" when all are gone
* en passant target: the square skipped by a pawn double step, or "-"
* halfmove clock: plies since the last capture or pawn move (fifty-move rule)
* fullmove number: starts at 1, incremented after every black move

ex) the starting position:
rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Self

from gamehub.chess.pieces import Color, is_piece_letter
from gamehub.chess.square import BOARD_SIZE, Square, is_algebraic
from gamehub.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class CastlingDirection(Enum):
    """FEN letter, and the key the board state stores the right under."""

    WHITE_KINGSIDE = ("K", "white_kingside")
    WHITE_QUEENSIDE = ("Q", "white_queenside")
    BLACK_KINGSIDE = ("k", "black_kingside")
    BLACK_QUEENSIDE = ("q", "black_queenside")

    @property
    def letter(self) -> str:
        return self.value[0]

    @property
    def key(self) -> str:
        return self.value[1]


def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    return {direction: direction.letter in castle_fen for direction in CastlingDirection}


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    letters = "".join(
        direction.letter
        for direction in CastlingDirection
        if castling_rights.get(direction, False)
    )
    return letters or "-"


def is_valid_castling_rights(castling: str) -> bool:
    """'-', or a non-empty subsequence of 'KQkq'"""
    if castling == "-":
        return True
    remaining = "KQkq"
    for letter in castling:
        position = remaining.find(letter)
        if position < 0:
            return False
        remaining = remaining[position + 1 :]
    return bool(castling)


def is_valid_placement(placement: str) -> bool:
    ranks = placement.split("/")
    if len(ranks) != BOARD_SIZE:
        return False

    for rank in ranks:
        file_count = 0
        for character in rank:
            if character.isdigit():
                file_count += int(character)
            elif is_piece_letter(character):
                file_count += 1
            else:
                return False
        if file_count != BOARD_SIZE:
            return False
    return True


def is_valid_en_passant(en_passant: str) -> bool:
    return en_passant == "-" or (is_algebraic(en_passant) and en_passant[1] in "36")


def is_valid_fen(fen: str) -> bool:
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    placement, color, castling, en_passant, halfmove, fullmove = parts
    return (
        is_valid_placement(placement)
        and color in ("w", "b")
        and is_valid_castling_rights(castling)
        and is_valid_en_passant(en_passant)
        and halfmove.isdigit()
        and fullmove.isdigit()
        and int(fullmove) >= 1
    )


@dataclass
class FENState:
    """Everything a FEN string encodes, as data."""

    placement: str
    active_color: Color
    castling_rights: dict[CastlingDirection, bool] = field(
        default_factory=lambda: {direction: True for direction in CastlingDirection}
    )
    en_passant_target: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        placement, color, castling, en_passant, halfmove, fullmove = fen.split(" ")
        return cls(
            placement=placement,
            active_color=Color(color),
            castling_rights=castling_from_fen(castling),
            en_passant_target=None if en_passant == "-" else Square.from_algebraic(en_passant),
            halfmove_clock=int(halfmove),
            fullmove_number=int(fullmove),
        )

    def to_fen(self) -> str:
        en_passant = (
            self.en_passant_target.to_algebraic() if self.en_passant_target else "-"
        )
        return " ".join(
            [
                self.placement,
                self.active_color.value,
                castling_to_fen(self.castling_rights),
                en_passant,
                str(self.halfmove_clock),
                str(self.fullmove_number),
            ]
        )
