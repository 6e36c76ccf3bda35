"""Unit tests for gamehub/plugins/single_player.py"""

from datetime import timedelta

import pytest

from gamehub.cards.scoring import ScoreRecord
from gamehub.core.exceptions import StateError
from gamehub.core.models import Seat
from gamehub.solitaire.plugin import SolitairePlugin
from gamehub.solitaire.state import SolitaireBoard, deal


@pytest.fixture
def plugin() -> SolitairePlugin:
    return SolitairePlugin()


@pytest.fixture
def board() -> SolitaireBoard:
    return deal(seed=1, draw_count=3)


def test_seat_limits(plugin: SolitairePlugin) -> None:
    assert plugin.seat_limits() == (1, 1)
    assert plugin.assign_seat_role(1, 1) == "player"


def test_next_player_without_seats(plugin: SolitairePlugin, board: SolitaireBoard) -> None:
    with pytest.raises(StateError):
        plugin.next_player("alice", [], board)


def test_first_player_is_the_only_seat(plugin: SolitairePlugin, board: SolitaireBoard) -> None:
    assert plugin.first_player([Seat("alice", 1, "player")], board) == "alice"


def test_final_score_stamps_elapsed_time(plugin: SolitairePlugin, board: SolitaireBoard) -> None:
    score = ScoreRecord(points=40)
    later = score.started_at + timedelta(minutes=12)

    final = plugin.final_score(board, score, now=later)

    assert final.final
    assert final.elapsed_seconds == pytest.approx(12 * 60)
    # time bonus for 10-20 minutes is 50; the completion bonus uses the board's own clock
    assert final.points == 40 + plugin.completion_bonus(board, score) + 50


@pytest.mark.parametrize("minutes, bonus", [(2, 300), (7, 150), (15, 50), (45, 0)])
def test_time_bonus(plugin: SolitairePlugin, minutes: int, bonus: int) -> None:
    assert plugin.time_bonus(minutes * 60) == bonus


def test_stats_include_the_score(plugin: SolitairePlugin, board: SolitaireBoard) -> None:
    stats = plugin.stats_projection(board, [Seat("alice", 1, "player")])
    assert stats["score"]["points"] == 0
    assert stats["player_count"] == 1
