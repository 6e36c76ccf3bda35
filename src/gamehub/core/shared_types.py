"""
Type definitions used across layers
"""

from enum import StrEnum


class GameStatus(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: frozenset[GameStatus] = frozenset(
    {GameStatus.COMPLETED, GameStatus.CANCELLED}
)


class GameType(StrEnum):
    """Closed set of rule sets the registry accepts."""

    CHESS = "chess"
    CHECKERS = "checkers"
    HEARTS = "hearts"
    SOLITAIRE = "solitaire"


class GameEvent(StrEnum):
    """Events broadcast to everyone seated at a game."""

    PLAYER_JOINED = "player-joined"
    GAME_STARTED = "game-started"
    MOVE_MADE = "move-made"
    GAME_COMPLETE = "game-complete"
    GAME_CANCELLED = "game-cancelled"


class NotificationType(StrEnum):
    """Direct notifications sent to a single user."""

    TURN = "turn"
    GAME_WON = "game_won"
    GAME_LOST = "game_lost"
    GAME_DRAW = "game_draw"
