"""Unit tests for gamehub/plugins/registry.py and the shared helpers of gamehub/plugins/base.py"""

from typing import Any, Optional, Sequence

import pytest

from gamehub.checkers.plugin import CheckersPlugin
from gamehub.core.exceptions import NotFoundError, StateError, ValidationError
from gamehub.core.models import Seat
from gamehub.plugins.base import rotate_seats, seat_by_role, seat_of
from gamehub.plugins.registry import PluginRegistry


class NamelessCheckers(CheckersPlugin):
    display_name = ""


class CrowdedCheckers(CheckersPlugin):
    max_seats = 12


class BackwardsCheckers(CheckersPlugin):
    min_seats = 3


class RolelessCheckers(CheckersPlugin):
    roles = ()


@pytest.fixture
def seats() -> list[Seat]:
    return [Seat("carol", 3, "south"), Seat("alice", 1, "north"), Seat("bob", 2, "east")]


def test_register_and_get() -> None:
    registry = PluginRegistry()
    plugin = CheckersPlugin()
    registry.register(plugin)

    assert registry.get("checkers") is plugin
    assert registry.is_supported("checkers")
    assert not registry.is_supported("chess")
    assert registry.game_types() == ["checkers"]
    assert len(registry) == 1
    assert list(registry) == [plugin]


def test_unknown_game_type() -> None:
    with pytest.raises(NotFoundError, match="Unsupported game type: backgammon"):
        PluginRegistry().get("backgammon")


def test_duplicate_registration() -> None:
    registry = PluginRegistry()
    registry.register(CheckersPlugin())
    with pytest.raises(ValidationError, match="already registered"):
        registry.register(CheckersPlugin())


def test_unregister() -> None:
    registry = PluginRegistry()
    registry.register(CheckersPlugin())
    assert registry.unregister("checkers")
    assert not registry.unregister("checkers")
    assert len(registry) == 0


@pytest.mark.parametrize(
    "plugin, message",
    [
        (NamelessCheckers(), "must have a display name"),
        (CrowdedCheckers(), "seat count must be between 1 and 10"),
        (BackwardsCheckers(), "min seats cannot exceed max seats"),
        (RolelessCheckers(), "at least one role"),
    ],
)
def test_invalid_plugins(plugin: Any, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        PluginRegistry().register(plugin)


def test_not_a_plugin() -> None:
    with pytest.raises(ValidationError, match="must implement GamePlugin"):
        PluginRegistry().register(object())  # type: ignore[arg-type]


def test_default_registry(registry: PluginRegistry) -> None:
    assert set(registry.game_types()) == {"chess", "checkers", "hearts", "solitaire"}
    metadata = {info.game_type: info for info in registry.available_game_types()}
    assert metadata["chess"].name == "Chess"
    assert metadata["solitaire"].max_seats == 1


# --- seat helpers ---
def test_rotate_seats_wraps_around(seats: Sequence[Seat]) -> None:
    assert rotate_seats("alice", seats) == "bob"
    assert rotate_seats("carol", seats) == "alice"
    assert rotate_seats("stranger", seats) == "alice"


def test_rotate_without_seats() -> None:
    with pytest.raises(StateError):
        rotate_seats("alice", [])


@pytest.mark.parametrize("role, user_id", [("east", "bob"), ("west", None)])
def test_seat_by_role(seats: Sequence[Seat], role: str, user_id: Optional[str]) -> None:
    seat = seat_by_role(seats, role)
    assert (seat.user_id if seat else None) == user_id


def test_seat_of(seats: Sequence[Seat]) -> None:
    seat = seat_of(seats, "carol")
    assert seat is not None and seat.seat_order == 3
    assert seat_of(seats, "dave") is None


def test_assign_seat_role() -> None:
    plugin = CheckersPlugin()
    assert plugin.assign_seat_role(1, 2) == "red"
    assert plugin.assign_seat_role(2, 2) == "black"
    with pytest.raises(StateError, match="Seat 3 does not exist"):
        plugin.assign_seat_role(3, 2)
