"""
Base class for games played alone (patience and friends).

Adds the score micro-model on top of the plugin contract: subclasses say which ScoreEvent a move
earns, and which bonuses a completed game is worth.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from gamehub.cards.scoring import ScoreEvent, ScoreRecord, apply_score_event, finalize_score
from gamehub.core.exceptions import StateError
from gamehub.core.models import Seat
from gamehub.plugins.base import BoardT, GamePlugin


class SinglePlayerPlugin(GamePlugin[BoardT]):
    min_seats = 1
    max_seats = 1
    roles = ("player",)
    categories = ("single-player",)

    def next_player(self, current_player_id: str, seats: Sequence[Seat], board: BoardT) -> str:
        if not seats:
            raise StateError("No players are seated at this game")
        return seats[0].user_id

    def winner(self, board: BoardT, seats: Sequence[Seat]) -> Optional[str]:
        if seats and self.is_complete(board, seats):
            return seats[0].user_id
        return None

    # --- scoring ---
    def move_score_event(self, move: Any, before: BoardT, after: BoardT) -> Optional[ScoreEvent]:
        """Score event earned by a move. None leaves the score untouched."""
        return ScoreEvent.move()

    def completion_bonus(self, board: BoardT, score: ScoreRecord) -> int:
        return 0

    def time_bonus(self, elapsed_seconds: float) -> int:
        return 0

    def score_move(
        self, move: Any, before: BoardT, after: BoardT, score: ScoreRecord
    ) -> ScoreRecord:
        event = self.move_score_event(move, before, after)
        if event is None:
            return score
        return apply_score_event(score, event)

    def final_score(
        self, board: BoardT, score: ScoreRecord, now: Optional[datetime] = None
    ) -> ScoreRecord:
        elapsed = score.elapsed_at(now)
        return finalize_score(
            score, self.completion_bonus(board, score), self.time_bonus(elapsed), now
        )

    def stats_projection(self, board: BoardT, seats: Sequence[Seat]) -> dict[str, Any]:
        stats = super().stats_projection(board, seats)
        score = getattr(board, "score", None)
        if isinstance(score, ScoreRecord):
            stats["score"] = score.model_dump(mode="json")
            stats["total_moves"] = score.moves
        return stats
