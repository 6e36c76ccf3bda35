"""
Notification port.

The service commits a move first and only then hands the resulting notifications to the
dispatcher, so a failing channel never undoes or fails a move.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol
from uuid import UUID

from gamehub.core.shared_types import GameEvent, NotificationType

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send_notification(
        self, user_id: str, type: str, message: str, game_id: Optional[UUID] = None
    ) -> None:
        """Direct message to one user."""
        ...

    def broadcast_to_game(self, game_id: UUID, event: str, payload: dict[str, Any]) -> None:
        """Event for everyone watching a game."""
        ...


@dataclass(frozen=True)
class Notification:
    """One pending delivery: a broadcast when user_id is None, a direct message otherwise."""

    game_id: UUID
    kind: GameEvent | NotificationType
    message: str = ""
    user_id: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def broadcast(cls, game_id: UUID, event: GameEvent, payload: dict[str, Any]) -> "Notification":
        return cls(game_id, event, payload=payload)

    @classmethod
    def direct(
        cls, game_id: UUID, user_id: str, kind: NotificationType, message: str
    ) -> "Notification":
        return cls(game_id, kind, message=message, user_id=user_id)

    @property
    def is_broadcast(self) -> bool:
        return self.user_id is None


class NotificationDispatcher:
    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier

    def dispatch(self, notifications: Iterable[Notification]) -> int:
        """Deliver each notification. Failures are logged and skipped. Returns the number delivered."""
        delivered = 0
        for notification in notifications:
            try:
                if notification.is_broadcast:
                    self.notifier.broadcast_to_game(
                        notification.game_id, str(notification.kind), notification.payload
                    )
                else:
                    assert notification.user_id is not None
                    self.notifier.send_notification(
                        notification.user_id,
                        str(notification.kind),
                        notification.message,
                        notification.game_id,
                    )
                delivered += 1
            except Exception:
                logger.warning(
                    f"Failed to deliver {notification.kind} for game {notification.game_id}",
                    exc_info=True,
                )
        return delivered


class LoggingNotifier:
    """Default adapter: writes notifications to the log."""

    def send_notification(
        self, user_id: str, type: str, message: str, game_id: Optional[UUID] = None
    ) -> None:
        logger.info(f"[{type}] to {user_id} (game {game_id}): {message}")

    def broadcast_to_game(self, game_id: UUID, event: str, payload: dict[str, Any]) -> None:
        logger.info(f"[{event}] game {game_id}: {payload}")
