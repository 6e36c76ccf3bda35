"""Orchestration of communication from API models to plugins, persistence and notifications (and the reverse direction)."""

import logging
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from gamehub.api.models import (
    ConfigurationCheckResponse,
    CreateGameRequest,
    CreateGameResponse,
    ForceStartResponse,
    GameSnapshotResponse,
    GameTypeResponse,
    JoinGameRequest,
    JoinGameResponse,
    MoveRecordResponse,
    MoveRequest,
    MoveResponse,
    SeatResponse,
)
from gamehub.core.config import Settings
from gamehub.core.exceptions import (
    ConcurrencyError,
    NotFoundError,
    StateError,
    ValidationError,
)
from gamehub.core.models import GameCriteria, MoveRecord, Seat, User
from gamehub.core.shared_types import GameEvent, GameStatus, NotificationType
from gamehub.db.repository import GameRepository, UserRepository
from gamehub.db.sql_repository import SQLGameRepository, SQLUserRepository
from gamehub.domain.game import MAX_SEATS_LIMIT, Game
from gamehub.notifications.notifier import (
    LoggingNotifier,
    Notification,
    NotificationDispatcher,
    Notifier,
)
from gamehub.plugins.base import GamePlugin
from gamehub.plugins.registry import PluginRegistry, build_default_registry

logger = logging.getLogger(__name__)

TURN_MESSAGE = "It's your turn!"
WON_MESSAGE = "Congratulations! You won the game!"
LOST_MESSAGE = "Game completed - better luck next time!"
DRAW_MESSAGE = "Game ended in a draw!"

# writes tried when a join fills the last seat but loses the start to another update
START_ATTEMPTS = 3


class GameService:
    """
    Runs every game type through the same pipeline.

    The service is stateless between calls: games, seats and moves live behind the repository, and
    rules live in the plugin registered for the game's type. State is committed before any
    notification goes out.
    """

    def __init__(
        self,
        repository: GameRepository,
        users: UserRepository,
        notifier: Notifier,
        registry: PluginRegistry,
        default_limit: int = 50,
    ) -> None:
        self.repo = repository
        self.users = users
        self.dispatcher = NotificationDispatcher(notifier)
        self.registry = registry
        self.default_limit = default_limit

    # --- lifecycle ---
    def create_game(self, request: CreateGameRequest) -> CreateGameResponse:
        """Create a game and seat its creator. Games that need a single seat start right away."""
        self._require_user(request.creator_id)
        plugin = self.registry.get(request.game_type)

        check = self.validate_game_configuration(request.game_type, request.settings)
        if not check.valid:
            raise ValidationError(check.error or "Invalid game configuration")
        min_seats, max_seats = self._seat_range(plugin, request.settings)

        initial_board = plugin.initial_board_state(request.settings)
        game = Game(
            name=request.name,
            game_type=str(plugin.game_type),
            board_state=plugin.serialize(initial_board),
            min_seats=min_seats,
            max_seats=max_seats,
            settings=dict(request.settings),
        )
        saved = self.repo.save(game)
        logger.info(f"Created {saved.game_type} game {saved.id} ({saved.name!r})")

        self.add_player_to_game(saved.id, JoinGameRequest(user_id=request.creator_id))

        # The creator's seat may have started the game
        stored = self._fetch_game(saved.id)
        return CreateGameResponse(
            id=stored.id,
            name=stored.name,
            game_type=stored.game_type,
            status=stored.status,
            move_count=stored.move_count,
            created_at=stored.created_at,
        )

    def add_player_to_game(self, game_id: UUID, request: JoinGameRequest) -> JoinGameResponse:
        """Seat a user at the next free seat, and start the game once enough seats are filled."""
        game = self._fetch_game(game_id)
        self._require_user(request.user_id)

        seats = self.repo.get_players(game_id)
        if not game.can_accept_players(len(seats)):
            raise StateError(
                f"Game cannot accept new players (status: {game.status}, seats: {len(seats)}/{game.max_seats})"
            )
        if any(seat.user_id == request.user_id for seat in seats):
            raise StateError("Player already in this game")

        plugin = self.registry.get(game.game_type)
        seat_order = len(seats) + 1
        role = plugin.assign_seat_role(seat_order, game.max_seats)
        seat = self.repo.add_player(game_id, request.user_id, seat_order, role)
        logger.info(f"User {request.user_id} took seat {seat_order} ({role}) in game {game_id}")

        notifications = [
            Notification.broadcast(
                game_id,
                GameEvent.PLAYER_JOINED,
                {"game_id": str(game_id), "user_id": request.user_id, "seat_order": seat_order, "role": role},
            )
        ]

        status = self._start_if_full(game_id, plugin, notifications)

        self.dispatcher.dispatch(notifications)
        return JoinGameResponse(seat_order=seat.seat_order, role=seat.role, game_status=status)

    def join_game(self, game_id: UUID, request: JoinGameRequest) -> JoinGameResponse:
        return self.add_player_to_game(game_id, request)

    def force_start_game(self, game_id: UUID) -> ForceStartResponse:
        """Administrative override: start a waiting game before its seats are filled."""
        game = self._fetch_game(game_id)
        if game.status == GameStatus.ACTIVE:
            raise StateError("Game is already active")
        if game.status != GameStatus.WAITING:
            raise StateError(f"Only waiting games can be started. status: {game.status}")

        plugin = self.registry.get(game.game_type)
        seats = self.repo.get_players(game_id)
        if len(seats) < plugin.force_start_seats:
            raise StateError(f"Game needs at least {plugin.force_start_seats} players to start")

        started, notifications = self._start(game, plugin, seats)
        self.dispatcher.dispatch(notifications)
        assert started.current_player_id is not None
        return ForceStartResponse(
            first_player_id=started.current_player_id,
            player_count=len(seats),
            game_status=started.status,
        )

    def cancel_game(self, game_id: UUID) -> GameSnapshotResponse:
        game = self._fetch_game(game_id)
        cancelled = game.cancel()
        self.repo.update(
            game_id,
            {"status": cancelled.status, "current_player_id": None},
            expected_version=game.version,
        )
        logger.info(f"Cancelled game {game_id}")
        self.dispatcher.dispatch(
            [Notification.broadcast(game_id, GameEvent.GAME_CANCELLED, {"game_id": str(game_id)})]
        )
        return self.get_game_state(game_id)

    # --- moves ---
    def make_move(self, game_id: UUID, request: MoveRequest) -> MoveResponse:
        """
        Attempt a move.

        Order: check the game, the user and the turn; let the plugin parse, validate and apply the
        move; complete the game or hand the turn over; then commit the move record and the game
        together against the version read at the start. Notifications go out only after the commit.
        """
        player_id = request.user_id
        game = self._fetch_game(game_id)
        self._require_user(player_id)

        if not game.has_status(GameStatus.ACTIVE):
            raise StateError(f"Game is not active. status: {game.status}")
        if not game.is_current_player(player_id):
            raise StateError("Not your turn")

        plugin = self.registry.get(game.game_type)
        seats = self.repo.get_players(game_id)
        board = plugin.deserialize(game.board_state)

        move = plugin.parse_move(request.move)
        validation = plugin.validate_move(move, board, player_id, seats)
        if not validation.ok:
            logger.info(f"Rejected move {request.move!r} by {player_id} in game {game_id}: {validation.error}")
            raise ValidationError(validation.error or "Invalid move")

        new_board = plugin.apply_move(move, board, player_id, seats)

        winner: Optional[str] = None
        is_complete = plugin.is_complete(new_board, seats)
        if is_complete:
            winner = plugin.winner(new_board, seats)
            new_board = plugin.on_complete(new_board, seats, winner)
            board_after = plugin.serialize(new_board)
            updated = game.make_move(None, board_after).complete(winner)
        else:
            next_player_id = plugin.next_player(player_id, seats, new_board)
            board_after = plugin.serialize(new_board)
            updated = game.make_move(next_player_id, board_after)

        record = MoveRecord(
            game_id=game_id,
            player_id=player_id,
            move=request.move,
            board_state_after=board_after,
            sequence=updated.move_count,
        )
        committed = self.repo.commit_move(updated, record, expected_version=game.version)
        logger.info(
            f"Move {record.sequence} by {player_id} in game {game_id}: {request.move!r}"
            + (f" (game complete, winner: {winner})" if is_complete else "")
        )

        if is_complete:
            notifications = self._completion_notifications(game_id, seats, winner)
        else:
            notifications = self._move_notifications(committed, request)
        self.dispatcher.dispatch(notifications)

        return MoveResponse(
            next_player_id=committed.current_player_id,
            move_count=committed.move_count,
            is_game_complete=is_complete,
            winner=winner,
        )

    # --- queries ---
    def get_game_state(self, game_id: UUID) -> GameSnapshotResponse:
        game = self._fetch_game(game_id)
        plugin = self.registry.get(game.game_type)
        seats = self.repo.get_players(game_id)
        board = plugin.deserialize(game.board_state)

        return GameSnapshotResponse(
            id=game.id,
            name=game.name,
            game_type=game.game_type,
            status=game.status,
            current_player_id=game.current_player_id,
            move_count=game.move_count,
            min_seats=game.min_seats,
            max_seats=game.max_seats,
            winner_id=game.winner_id,
            settings=dict(game.settings),
            seats=[self._seat_response(seat) for seat in seats],
            board_state=plugin.serialize(board),
            render_data=plugin.render_projection(board, seats),
            stats=plugin.stats_projection(board, seats),
            created_at=game.created_at,
            updated_at=game.updated_at,
            version=game.version,
        )

    def get_move_history(
        self, game_id: UUID, limit: Optional[int] = None
    ) -> list[MoveRecordResponse]:
        self._fetch_game(game_id)
        return [
            MoveRecordResponse(
                sequence=record.sequence,
                player_id=record.player_id,
                move=record.move,
                board_state_after=record.board_state_after,
                created_at=record.created_at,
            )
            for record in self.repo.get_move_history(game_id, limit)
        ]

    def get_game_players(self, game_id: UUID) -> list[SeatResponse]:
        self._fetch_game(game_id)
        return [self._seat_response(seat) for seat in self.repo.get_players(game_id)]

    def find_games(self, criteria: Optional[GameCriteria] = None) -> list[CreateGameResponse]:
        criteria = criteria or GameCriteria()
        if criteria.limit is None:
            criteria = GameCriteria(
                status=criteria.status,
                game_type=criteria.game_type,
                player_id=criteria.player_id,
                limit=self.default_limit,
            )
        return [
            CreateGameResponse(
                id=game.id,
                name=game.name,
                game_type=game.game_type,
                status=game.status,
                move_count=game.move_count,
                created_at=game.created_at,
            )
            for game in self.repo.find_by_criteria(criteria)
        ]

    def available_game_types(self) -> list[GameTypeResponse]:
        return [
            GameTypeResponse(
                game_type=metadata.game_type,
                name=metadata.name,
                description=metadata.description,
                min_seats=metadata.min_seats,
                max_seats=metadata.max_seats,
                complexity=metadata.complexity,
                categories=list(metadata.categories),
            )
            for metadata in self.registry.available_game_types()
        ]

    def validate_game_configuration(
        self, game_type: str, settings: dict[str, Any]
    ) -> ConfigurationCheckResponse:
        """Check seat overrides in the settings against the plugin's limits."""
        if not self.registry.is_supported(game_type):
            return ConfigurationCheckResponse(valid=False, error=f"Unsupported game type: {game_type}")
        plugin = self.registry.get(game_type)

        try:
            min_seats, max_seats = self._seat_range(plugin, settings)
        except ValidationError as exc:
            return ConfigurationCheckResponse(valid=False, error=str(exc))

        if min_seats < 1 or max_seats > MAX_SEATS_LIMIT:
            return ConfigurationCheckResponse(
                valid=False, error=f"Player count must be between 1 and {MAX_SEATS_LIMIT}"
            )
        if min_seats < plugin.min_seats or max_seats > plugin.max_seats:
            return ConfigurationCheckResponse(
                valid=False,
                error=f"{plugin.display_name} supports {plugin.min_seats}-{plugin.max_seats} players",
            )
        if min_seats > max_seats:
            return ConfigurationCheckResponse(
                valid=False, error="Minimum players cannot exceed maximum players"
            )
        return ConfigurationCheckResponse(valid=True)

    # --- internal helpers ---
    def _start_if_full(
        self, game_id: UUID, plugin: GamePlugin[Any], notifications: list[Notification]
    ) -> GameStatus:
        """
        Start the game once its seats are filled. Each attempt reads the game fresh; a start that
        loses to a concurrent update is retried, and a game another join already started is
        returned as is.
        """
        attempt = 1
        while True:
            game = self._fetch_game(game_id)
            seats = self.repo.get_players(game_id)
            if not game.can_start(len(seats)):
                return game.status
            try:
                started, start_notifications = self._start(game, plugin, seats)
            except ConcurrencyError:
                if attempt >= START_ATTEMPTS:
                    raise
                logger.warning(f"Game {game_id} changed while starting, retrying ({attempt}/{START_ATTEMPTS})")
                attempt += 1
                continue
            notifications.extend(start_notifications)
            return started.status

    def _start(
        self, game: Game, plugin: GamePlugin[Any], seats: Sequence[Seat]
    ) -> tuple[Game, list[Notification]]:
        """Activate a waiting game and hand the first turn to the plugin's choice of player."""
        board = plugin.deserialize(game.board_state)
        first_player_id = plugin.first_player(seats, board)
        started = game.start(first_player_id)
        stored = self.repo.update(
            game.id,
            {"status": started.status, "current_player_id": first_player_id},
            expected_version=game.version,
        )
        logger.info(f"Started game {game.id} with {len(seats)} players, {first_player_id} to move")
        return stored, [
            Notification.broadcast(
                game.id,
                GameEvent.GAME_STARTED,
                {"game_id": str(game.id), "current_player_id": first_player_id},
            ),
            Notification.direct(game.id, first_player_id, NotificationType.TURN, TURN_MESSAGE),
        ]

    @staticmethod
    def _move_notifications(game: Game, request: MoveRequest) -> list[Notification]:
        notifications = [
            Notification.broadcast(
                game.id,
                GameEvent.MOVE_MADE,
                {
                    "game_id": str(game.id),
                    "player_id": request.user_id,
                    "move": request.move,
                    "current_player_id": game.current_player_id,
                    "move_count": game.move_count,
                },
            )
        ]
        if game.current_player_id is not None:
            notifications.append(
                Notification.direct(game.id, game.current_player_id, NotificationType.TURN, TURN_MESSAGE)
            )
        return notifications

    @staticmethod
    def _completion_notifications(
        game_id: UUID, seats: Sequence[Seat], winner: Optional[str]
    ) -> list[Notification]:
        notifications = [
            Notification.broadcast(
                game_id, GameEvent.GAME_COMPLETE, {"game_id": str(game_id), "winner": winner}
            )
        ]
        for seat in seats:
            if winner is None:
                kind, message = NotificationType.GAME_DRAW, DRAW_MESSAGE
            elif seat.user_id == winner:
                kind, message = NotificationType.GAME_WON, WON_MESSAGE
            else:
                kind, message = NotificationType.GAME_LOST, LOST_MESSAGE
            notifications.append(Notification.direct(game_id, seat.user_id, kind, message))
        return notifications

    @staticmethod
    def _seat_range(plugin: GamePlugin[Any], settings: dict[str, Any]) -> tuple[int, int]:
        """Seat limits for a new game: the plugin's, unless the settings narrow them."""
        min_seats = settings.get("min_seats", plugin.min_seats)
        max_seats = settings.get("max_seats", plugin.max_seats)
        if not isinstance(min_seats, int) or not isinstance(max_seats, int):
            raise ValidationError("min_seats and max_seats must be integers")
        return min_seats, max_seats

    def _seat_response(self, seat: Seat) -> SeatResponse:
        user = self.users.find_by_id(seat.user_id)
        return SeatResponse(
            user_id=seat.user_id,
            username=user.username if user else None,
            seat_order=seat.seat_order,
            role=seat.role,
            joined_at=seat.joined_at,
        )

    def _fetch_game(self, game_id: UUID) -> Game:
        """Attempt to find the game in the repository and raise error if it fails."""
        game = self.repo.find_by_id(game_id)
        if game is None:
            raise NotFoundError(f"Game with {game_id=} not found.")
        return game

    def _require_user(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id!r} not found")
        return user


def build_game_service(
    db_session: Session, settings: Settings, notifier: Optional[Notifier] = None
) -> GameService:
    """Wire the SQL repositories, the default plugins and a notifier into a service."""
    return GameService(
        repository=SQLGameRepository(db_session),
        users=SQLUserRepository(db_session),
        notifier=notifier or LoggingNotifier(),
        registry=build_default_registry(settings),
        default_limit=settings.default_query_limit,
    )
