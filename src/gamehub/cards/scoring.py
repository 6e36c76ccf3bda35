"""
Score tracking for single-player card games.

A ScoreRecord is updated by feeding it ScoreEvents. Points never drop below zero.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional, Self

from pydantic import BaseModel, Field

from gamehub.core.exceptions import ScoreEventError
from gamehub.core.models import utc_now


class ScoreEventKind(StrEnum):
    MOVE = "move"
    BONUS = "bonus"
    PENALTY = "penalty"
    TIME_UPDATE = "time_update"


class ScoreEntry(BaseModel):
    """A bonus or penalty line on the score sheet."""

    type: str
    points: int
    description: str = ""
    timestamp: datetime = Field(default_factory=utc_now)


class ScoreEvent(BaseModel):
    kind: str
    points: int = 0
    label: str = ""
    description: str = ""

    @classmethod
    def move(cls, points: int = 0) -> Self:
        return cls(kind=ScoreEventKind.MOVE, points=points)

    @classmethod
    def bonus(cls, label: str, points: int, description: str = "") -> Self:
        return cls(kind=ScoreEventKind.BONUS, label=label, points=points, description=description)

    @classmethod
    def penalty(cls, label: str, points: int, description: str = "") -> Self:
        return cls(kind=ScoreEventKind.PENALTY, label=label, points=points, description=description)

    @classmethod
    def time_update(cls) -> Self:
        return cls(kind=ScoreEventKind.TIME_UPDATE)


class ScoreRecord(BaseModel):
    points: int = 0
    moves: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    elapsed_seconds: float = 0.0
    bonuses: list[ScoreEntry] = Field(default_factory=list)
    penalties: list[ScoreEntry] = Field(default_factory=list)
    final: bool = False

    def elapsed_at(self, now: Optional[datetime] = None) -> float:
        return max(0.0, ((now or utc_now()) - self.started_at).total_seconds())


def apply_score_event(
    score: ScoreRecord, event: ScoreEvent, now: Optional[datetime] = None
) -> ScoreRecord:
    """Return a new record with the event applied. Unknown event kinds raise ScoreEventError."""
    now = now or utc_now()
    record = score.model_copy(deep=True)

    match event.kind:
        case ScoreEventKind.MOVE:
            record.moves += 1
            record.points += event.points
        case ScoreEventKind.BONUS:
            record.bonuses.append(
                ScoreEntry(type=event.label, points=event.points, description=event.description, timestamp=now)
            )
            record.points += event.points
        case ScoreEventKind.PENALTY:
            record.penalties.append(
                ScoreEntry(type=event.label, points=event.points, description=event.description, timestamp=now)
            )
            record.points -= event.points
        case ScoreEventKind.TIME_UPDATE:
            record.elapsed_seconds = record.elapsed_at(now)
        case _:
            raise ScoreEventError(f"Unknown score event type: {event.kind}")

    record.points = max(0, record.points)
    return record


def finalize_score(
    score: ScoreRecord,
    completion_bonus: int,
    time_bonus: int,
    now: Optional[datetime] = None,
) -> ScoreRecord:
    """Stamp the elapsed time, add the completion and time bonuses, and mark the record final."""
    now = now or utc_now()
    record = apply_score_event(score, ScoreEvent.time_update(), now)
    if completion_bonus > 0:
        record = apply_score_event(
            record, ScoreEvent.bonus("completion", completion_bonus, "Game completion bonus"), now
        )
    if time_bonus > 0:
        record = apply_score_event(
            record, ScoreEvent.bonus("time", time_bonus, "Time completion bonus"), now
        )
    record.final = True
    return record
