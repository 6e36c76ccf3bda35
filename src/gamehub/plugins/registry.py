"""
Registry of the rule sets available to the service.

Built once at startup and handed to the service explicitly. Problems with a plugin surface when it
is registered, not when a game of that type is first created.
"""

import logging
from typing import Any, Iterator

from gamehub.core.config import Settings
from gamehub.core.exceptions import NotFoundError, ValidationError
from gamehub.core.shared_types import GameType
from gamehub.domain.game import MAX_SEATS_LIMIT
from gamehub.plugins.base import GamePlugin, PluginMetadata

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Maps a game type to its plugin instance.

    Usage:
        registry = PluginRegistry()
        registry.register(ChessPlugin(oracle))
        plugin = registry.get("chess")
    """

    def __init__(self) -> None:
        self._plugins: dict[GameType, GamePlugin[Any]] = {}

    def register(self, plugin: GamePlugin[Any]) -> None:
        game_type = self._validate_plugin(plugin)
        if game_type in self._plugins:
            raise ValidationError(f"Game type {game_type!r} is already registered")
        self._plugins[game_type] = plugin
        logger.debug(f"Registered {game_type} plugin ({type(plugin).__name__})")

    def get(self, game_type: str) -> GamePlugin[Any]:
        try:
            return self._plugins[GameType(game_type)]
        except (ValueError, KeyError):
            raise NotFoundError(f"Unsupported game type: {game_type}") from None

    def is_supported(self, game_type: str) -> bool:
        return game_type in self._plugins

    def unregister(self, game_type: str) -> bool:
        return self._plugins.pop(game_type, None) is not None  # type: ignore[arg-type]

    def game_types(self) -> list[str]:
        return [str(game_type) for game_type in self._plugins]

    def available_game_types(self) -> list[PluginMetadata]:
        return [plugin.metadata() for plugin in self._plugins.values()]

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[GamePlugin[Any]]:
        return iter(self._plugins.values())

    @staticmethod
    def _validate_plugin(plugin: GamePlugin[Any]) -> GameType:
        if not isinstance(plugin, GamePlugin):
            raise ValidationError(
                f"Plugin must implement GamePlugin, got {type(plugin).__name__}"
            )

        raw_type = getattr(plugin, "game_type", None)
        try:
            game_type = GameType(raw_type)
        except ValueError:
            allowed = ", ".join(str(member) for member in GameType)
            raise ValidationError(
                f"Unknown game type {raw_type!r}. Pick one from {allowed}"
            ) from None

        if not plugin.display_name:
            raise ValidationError(f"{game_type} plugin must have a display name")

        min_seats, max_seats = plugin.seat_limits()
        if min_seats < 1 or max_seats > MAX_SEATS_LIMIT:
            raise ValidationError(
                f"{game_type} plugin seat count must be between 1 and {MAX_SEATS_LIMIT}"
            )
        if min_seats > max_seats:
            raise ValidationError(f"{game_type} plugin min seats cannot exceed max seats")

        if not plugin.roles:
            raise ValidationError(f"{game_type} plugin must declare at least one role")

        if getattr(plugin, "board_model", None) is None:
            raise ValidationError(f"{game_type} plugin must declare its board model")
        return game_type


def build_default_registry(settings: Settings) -> PluginRegistry:
    """Registry with the built-in rule sets."""
    from gamehub.checkers.plugin import CheckersPlugin
    from gamehub.chess.oracle import PythonChessOracle
    from gamehub.chess.plugin import ChessPlugin
    from gamehub.hearts.plugin import HeartsPlugin
    from gamehub.solitaire.plugin import SolitairePlugin

    registry = PluginRegistry()
    registry.register(ChessPlugin(PythonChessOracle()))
    registry.register(CheckersPlugin())
    registry.register(HeartsPlugin(target_score=settings.hearts_target_score))
    registry.register(SolitairePlugin(draw_count=settings.solitaire_draw_count))
    return registry
