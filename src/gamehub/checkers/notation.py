"""
Reading checkers moves typed by players.

Accepted forms:
    a3-b4                   plain move
    c3xe5, a1xc3xe5         capture, or a chain of captures
    a3 to b4, c3 takes e5   natural language
    {"from": "a3", "to": "b4", "captures": []}   structured (dict or JSON string)
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from gamehub.core.exceptions import ValidationError
from gamehub.core.models import MovePayload

BOARD_SIZE = 8
FORMAT_HINT = (
    'Invalid move format. Use formats like: a3-b4, a3xc5, a3xc5xe7, a3 to b4, or {"from": "a3", "to": "b4"}'
)

SQUARE = r"[a-h][1-8]"
DASH_PATTERN = re.compile(rf"^({SQUARE})\s*-\s*({SQUARE})$")
CHAIN_PATTERN = re.compile(rf"^{SQUARE}(?:x{SQUARE})+$")
WORDS_PATTERN = re.compile(rf"^({SQUARE})\s+(to|takes?|x)\s+({SQUARE})$")


@dataclass(frozen=True)
class CheckersMove:
    """
    origin / destination: squares in algebraic notation
    path: landing squares after the origin, ending with the destination
    captures: squares jumped over, as given by the player (may be empty)
    """

    origin: str
    destination: str
    path: tuple[str, ...] = field(default_factory=tuple)
    captures: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.path:
            object.__setattr__(self, "path", (self.destination,))

    def notation(self) -> str:
        separator = "x" if self.captures else "-"
        return separator.join((self.origin, *self.path))


def is_square(text: Any) -> bool:
    return isinstance(text, str) and re.fullmatch(SQUARE, text) is not None


def to_grid(square: str) -> tuple[int, int]:
    """a1 is the bottom left: row 7, column 0"""
    return BOARD_SIZE - int(square[1]), ord(square[0]) - ord("a")


def to_algebraic(row: int, col: int) -> str:
    return f"{chr(ord('a') + col)}{BOARD_SIZE - row}"


def jumped_square(origin: str, landing: str) -> Optional[str]:
    """Square between two squares a jump apart, or None when they are not a jump apart."""
    from_row, from_col = to_grid(origin)
    to_row, to_col = to_grid(landing)
    if abs(to_row - from_row) != 2 or abs(to_col - from_col) != 2:
        return None
    return to_algebraic((from_row + to_row) // 2, (from_col + to_col) // 2)


def _captures_along(origin: str, path: tuple[str, ...]) -> tuple[str, ...]:
    captures = []
    current = origin
    for landing in path:
        middle = jumped_square(current, landing)
        if middle:
            captures.append(middle)
        current = landing
    return tuple(captures)


def _from_mapping(raw: dict[str, Any]) -> CheckersMove:
    origin = raw.get("from")
    destination = raw.get("to")
    if not is_square(origin) or not is_square(destination):
        raise ValidationError(
            'Move must specify from and to positions (e.g., {"from": "a3", "to": "b4"})'
        )

    path = raw.get("path") or [destination]
    captures = raw.get("captures") or []
    if not all(is_square(square) for square in [*path, *captures]):
        raise ValidationError("Invalid square notation. Use format like a1, b2, etc.")
    if path[-1] != destination:
        raise ValidationError("Move path must end on the destination square")
    return CheckersMove(origin, destination, tuple(path), tuple(captures))


def parse_checkers_move(raw: MovePayload) -> CheckersMove:
    if isinstance(raw, dict):
        return _from_mapping(raw)
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Invalid move input")

    text = raw.strip().lower()

    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            raise ValidationError("Invalid JSON move format") from None
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON move format")
        return _from_mapping(data)

    if match := DASH_PATTERN.match(text):
        return CheckersMove(match.group(1), match.group(2))

    if CHAIN_PATTERN.match(text):
        origin, *path = text.split("x")
        return CheckersMove(origin, path[-1], tuple(path), _captures_along(origin, tuple(path)))

    if match := WORDS_PATTERN.match(text):
        origin, verb, destination = match.groups()
        captures = _captures_along(origin, (destination,)) if verb != "to" else ()
        return CheckersMove(origin, destination, (destination,), captures)

    raise ValidationError(FORMAT_HINT)
