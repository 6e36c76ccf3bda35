"""Unit tests for gamehub/checkers/notation.py"""

from typing import Any

import pytest

from gamehub.checkers.notation import (
    FORMAT_HINT,
    CheckersMove,
    jumped_square,
    parse_checkers_move,
    to_algebraic,
    to_grid,
)
from gamehub.core.exceptions import ValidationError


@pytest.mark.parametrize("square, grid", [("a1", (7, 0)), ("h8", (0, 7)), ("d4", (4, 3))])
def test_grid_conversion(square: str, grid: tuple[int, int]) -> None:
    assert to_grid(square) == grid
    assert to_algebraic(*grid) == square


@pytest.mark.parametrize(
    "origin, landing, middle",
    [("c3", "e5", "d4"), ("e5", "c3", "d4"), ("a3", "b4", None), ("a3", "a5", None)],
)
def test_jumped_square(origin: str, landing: str, middle: str | None) -> None:
    assert jumped_square(origin, landing) == middle


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a3-b4", CheckersMove("a3", "b4")),
        ("A3 - B4", CheckersMove("a3", "b4")),
        ("c3xe5", CheckersMove("c3", "e5", ("e5",), ("d4",))),
        ("a1xc3xe5", CheckersMove("a1", "e5", ("c3", "e5"), ("b2", "d4"))),
        ("a3 to b4", CheckersMove("a3", "b4")),
        ("c3 takes e5", CheckersMove("c3", "e5", ("e5",), ("d4",))),
        ("c3 x e5", CheckersMove("c3", "e5", ("e5",), ("d4",))),
        ('{"from": "a3", "to": "b4"}', CheckersMove("a3", "b4")),
        ({"from": "c3", "to": "e5", "captures": ["d4"]}, CheckersMove("c3", "e5", ("e5",), ("d4",))),
        (
            {"from": "a1", "to": "e5", "path": ["c3", "e5"]},
            CheckersMove("a1", "e5", ("c3", "e5")),
        ),
    ],
)
def test_parse_move(raw: Any, expected: CheckersMove) -> None:
    assert parse_checkers_move(raw) == expected


@pytest.mark.parametrize(
    "raw, message",
    [
        ("", "Invalid move input"),
        ("a3b4", FORMAT_HINT),
        ("a9-b4", FORMAT_HINT),
        ("move a3", FORMAT_HINT),
        ("{not json", "Invalid JSON move format"),
        ("[1, 2]", FORMAT_HINT),
        ({"from": "a3"}, "Move must specify from and to positions"),
        ({"from": "a3", "to": "b4", "captures": ["z9"]}, "Invalid square notation"),
        ({"from": "a3", "to": "b4", "path": ["c5"]}, "Move path must end on the destination square"),
    ],
)
def test_parse_bad_move(raw: Any, message: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_checkers_move(raw)
    assert str(exc_info.value).startswith(message)


def test_notation() -> None:
    assert CheckersMove("a3", "b4").notation() == "a3-b4"
    assert CheckersMove("a1", "e5", ("c3", "e5"), ("b2", "d4")).notation() == "a1xc3xe5"
