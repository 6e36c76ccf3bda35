"""
The rules oracle: full chess legality, delegated to python-chess.

The plugin only ever talks to the oracle in FEN, so another engine can stand in for python-chess
by implementing RulesOracle.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

import chess

from gamehub.chess.pieces import Color
from gamehub.core.exceptions import InvalidFENError

logger = logging.getLogger(__name__)

NOTATION_HINT = "Invalid move notation. Use format like e2-e4 or Nf3"

# e2-e4, e2e4, e7e8q, e7-e8=Q
COORDINATE_PATTERN = re.compile(
    r"^([a-h][1-8])\s*-?\s*([a-h][1-8])\s*(?:=?([qrbnQRBN]))?[+#]?$"
)
# Nf3, exd5, Raxd1, e8=Q+, O-O, O-O-O
SAN_PATTERN = re.compile(
    r"^(?:[O0]-[O0](?:-[O0])?|[NBRQK]?[a-h]?[1-8]?x?[a-h][1-8](?:=?[NBRQ])?)[+#]?$"
)


@dataclass(frozen=True)
class OracleResult:
    legal: bool
    fen: Optional[str] = None
    san: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Outcome:
    result: str
    winner: Optional[Color]
    termination: str


class RulesOracle(Protocol):
    def play(self, fen: str, move: str) -> OracleResult:
        """Try the move in the position. Never raises for an illegal move; reports it instead."""
        ...

    def outcome(self, fen: str) -> Optional[Outcome]: ...

    def legal_moves(self, fen: str) -> list[str]: ...

    def is_check(self, fen: str) -> bool: ...


class PythonChessOracle:
    """RulesOracle backed by python-chess."""

    def play(self, fen: str, move: str) -> OracleResult:
        board = self._board(fen)
        text = move.strip()
        try:
            parsed = self._parse(board, text)
        except chess.AmbiguousMoveError:
            return OracleResult(False, error=f"Ambiguous move: {text}. Add the origin file or rank")
        except chess.IllegalMoveError:
            return OracleResult(False, error=f"Illegal move: {text}")
        except ValueError:
            return OracleResult(False, error=NOTATION_HINT)

        san = board.san(parsed)
        board.push(parsed)
        return OracleResult(True, fen=board.fen(en_passant="fen"), san=san)

    def outcome(self, fen: str) -> Optional[Outcome]:
        result = self._board(fen).outcome(claim_draw=True)
        if result is None:
            return None
        winner = None if result.winner is None else (Color.WHITE if result.winner else Color.BLACK)
        return Outcome(result.result(), winner, result.termination.name.lower())

    def legal_moves(self, fen: str) -> list[str]:
        return sorted(move.uci() for move in self._board(fen).legal_moves)

    def is_check(self, fen: str) -> bool:
        return self._board(fen).is_check()

    @staticmethod
    def _board(fen: str) -> chess.Board:
        try:
            return chess.Board(fen)
        except ValueError as exc:
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}") from exc

    @staticmethod
    def _parse(board: chess.Board, text: str) -> chess.Move:
        coordinate = COORDINATE_PATTERN.match(text)
        if coordinate:
            origin, destination, promotion = coordinate.groups()
            move = chess.Move.from_uci(f"{origin}{destination}{(promotion or '').lower()}")
            if move in board.legal_moves:
                return move
            # a pawn reaching the last rank without a piece named becomes a queen
            if promotion is None:
                queening = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
                if queening in board.legal_moves:
                    return queening
            raise chess.IllegalMoveError(text)

        if not SAN_PATTERN.match(text):
            raise ValueError(text)
        return board.parse_san(text.replace("0", "O"))
