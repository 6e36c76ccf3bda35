from typing import Any

import pytest

from gamehub.api.models import CreateGameRequest, JoinGameRequest, MoveRequest
from gamehub.core.exceptions import InvalidRequestError


# -- Validation - CreateGameRequest --
def test_valid_create_request() -> None:
    """Text fields are trimmed, settings default to an empty dict."""
    request = CreateGameRequest(name="  Friday night ", game_type="chess", creator_id="alice")
    assert request.name == "Friday night"
    assert request.settings == {}


@pytest.mark.parametrize("field", ["name", "game_type", "creator_id"])
def test_empty_create_fields(field: str) -> None:
    values = {"name": "Friday night", "game_type": "chess", "creator_id": "alice"}
    values[field] = "   "
    with pytest.raises(InvalidRequestError, match=f"{field} cannot be empty"):
        _ = CreateGameRequest(**values)


def test_settings_are_passed_through() -> None:
    request = CreateGameRequest(
        name="patience", game_type="solitaire", creator_id="alice", settings={"draw_count": 1, "seed": 7}
    )
    assert request.settings == {"draw_count": 1, "seed": 7}


# -- Validation - JoinGameRequest --
def test_empty_user_id() -> None:
    with pytest.raises(InvalidRequestError, match="user_id cannot be empty"):
        _ = JoinGameRequest(user_id="")


# -- Validation - MoveRequest --
@pytest.mark.parametrize("move", ["e2e4", "wh", {"from": "e2", "to": "e4"}, {"type": "play", "card": "2C"}])
def test_valid_moves(move: Any) -> None:
    """Text and structured moves are both accepted; their meaning is up to the game."""
    request = MoveRequest(user_id="alice", move=move)
    assert request.move == move


@pytest.mark.parametrize("move", ["", "   ", {}])
def test_empty_move(move: Any) -> None:
    with pytest.raises(InvalidRequestError, match="move cannot be empty"):
        _ = MoveRequest(user_id="alice", move=move)


def test_move_needs_a_player() -> None:
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(user_id=" ", move="d")
