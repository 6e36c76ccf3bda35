import logging
from typing import Any, Optional, Sequence

from gamehub.cards.cards import Card, Rank
from gamehub.cards.scoring import ScoreEvent, ScoreRecord
from gamehub.core.exceptions import ValidationError
from gamehub.core.models import MovePayload, Seat, utc_now
from gamehub.core.shared_types import GameType
from gamehub.plugins.base import MoveValidation, seat_of
from gamehub.plugins.single_player import SinglePlayerPlugin
from gamehub.solitaire.commands import (
    Action,
    MoveDescriptor,
    PileKind,
    parse_move_payload,
)
from gamehub.solitaire.state import (
    SolitaireBoard,
    builds_on,
    deal,
    default_move_size,
    describe,
    rank_name,
)

logger = logging.getLogger(__name__)

FOUNDATION_POINTS = 10
FLIP_POINTS = 5
FOUNDATION_TO_TABLEAU_PENALTY = 15
RESET_PENALTY = 100


class SolitairePlugin(SinglePlayerPlugin[SolitaireBoard]):
    """
    Klondike patience for one player.

    Settings:
        draw_count: cards turned from the stock per draw, 1 or 3 (defaults to the registry setting)
        seed: shuffle seed, for reproducible deals
    """

    game_type = GameType.SOLITAIRE
    display_name = "Klondike Solitaire"
    description = "Classic single-player solitaire game. Build foundation piles in suit from Ace to King."
    complexity = "Medium"
    categories = ("Solitaire", "Card Game", "Single Player")
    board_model = SolitaireBoard

    def __init__(self, draw_count: int = 3) -> None:
        self.draw_count = draw_count

    def initial_board_state(self, settings: dict[str, Any]) -> SolitaireBoard:
        draw_count = settings.get("draw_count", self.draw_count)
        if draw_count not in (1, 3):
            raise ValidationError(f"draw_count must be 1 or 3, got {draw_count!r}")
        seed = settings.get("seed")
        if seed is not None and not isinstance(seed, int):
            raise ValidationError("seed must be an integer")
        return deal(seed, draw_count)

    def parse_move(self, raw: MovePayload) -> MoveDescriptor:
        return parse_move_payload(raw)

    # --- validation ---
    def resolve(self, move: MoveDescriptor, board: SolitaireBoard) -> MoveDescriptor:
        """Fix the card count of a move: explicit counts stand, tableau transfers carry the whole run."""
        if move.count_explicit or not move.is_tableau_transfer:
            return move
        assert move.source is not None
        return move.with_count(default_move_size(board.pile(move.source)))

    def validate_move(
        self, move: Any, board: SolitaireBoard, player_id: str, seats: Sequence[Seat]
    ) -> MoveValidation:
        if not isinstance(move, MoveDescriptor):
            return MoveValidation.reject("Invalid move object")
        if seat_of(seats, player_id) is None:
            return MoveValidation.reject("Player not in game")

        match move.action:
            case Action.DRAW_STOCK:
                return self._validate_draw(board)
            case Action.RESET_STOCK:
                return self._validate_reset(board)
            case Action.FLIP_CARD:
                return self._validate_flip(move, board)
            case Action.MOVE_CARD:
                return self._validate_transfer(self.resolve(move, board), board)
        return MoveValidation.reject(f"Unknown action: {move.action}")

    @staticmethod
    def _validate_draw(board: SolitaireBoard) -> MoveValidation:
        if not board.stock:
            return MoveValidation.reject(
                'Stock pile is empty - no more cards to draw. Try "r" to reset from waste pile'
            )
        return MoveValidation.accept()

    @staticmethod
    def _validate_reset(board: SolitaireBoard) -> MoveValidation:
        if board.stock:
            return MoveValidation.reject(
                'Cannot reset - stock pile still has cards. Draw all cards first with "d"'
            )
        if not board.waste:
            return MoveValidation.reject(
                'Cannot reset - waste pile is empty. Draw some cards first with "d"'
            )
        return MoveValidation.accept()

    @staticmethod
    def _validate_flip(move: MoveDescriptor, board: SolitaireBoard) -> MoveValidation:
        if move.source is None or move.source.kind != PileKind.TABLEAU:
            return MoveValidation.reject("Can only flip tableau cards")
        column = board.pile(move.source)
        number = (move.source.column or 0) + 1
        if not column:
            return MoveValidation.reject(f"Tableau column {number} is empty - no cards to flip")
        if column[-1].face_up:
            return MoveValidation.reject(
                f"Card in tableau {number} is already face-up - try moving it instead"
            )
        return MoveValidation.accept()

    def _validate_transfer(self, move: MoveDescriptor, board: SolitaireBoard) -> MoveValidation:
        source, target = move.source, move.target
        if source is None or target is None:
            return MoveValidation.reject("Move must specify from and to locations")
        if source.kind == PileKind.STOCK:
            return MoveValidation.reject(
                'Cannot move cards straight from the stock pile - draw them first with "d"'
            )
        if source == target:
            return MoveValidation.reject("Source and destination are the same pile")

        cards = board.pile(source)
        if not cards:
            return MoveValidation.reject(f"No cards available at {source.describe()}")

        count = move.card_count
        if count > len(cards):
            return MoveValidation.reject(
                f"Not enough cards at {source.describe()} - only {len(cards)} available, "
                f"tried to move {count}"
            )
        if count > 1 and source.kind != PileKind.TABLEAU:
            return MoveValidation.reject(f"Can only move one card at a time from the {source.describe()}")

        moving = cards[-count:]
        if any(not card.face_up for card in moving):
            if target.kind == PileKind.FOUNDATION:
                return MoveValidation.reject("Cannot move face-down card to foundation")
            return MoveValidation.reject("Cannot move face-down cards")

        match target.kind:
            case PileKind.FOUNDATION:
                return self._validate_to_foundation(moving, board.pile(target), str(target.suit))
            case PileKind.TABLEAU:
                return self._validate_to_tableau(moving, board.pile(target), (target.column or 0) + 1)
        return MoveValidation.reject("Invalid destination type")

    @staticmethod
    def _validate_to_foundation(moving: list[Card], pile: list[Card], suit: str) -> MoveValidation:
        if len(moving) != 1:
            return MoveValidation.reject("Can only move one card to foundation")
        card = moving[0]

        if not pile:
            if card.rank != Rank.ACE:
                return MoveValidation.reject(
                    f"Foundation piles must start with Ace - cannot place {describe(card)} "
                    f"on empty {suit} foundation"
                )
            if card.suit != suit:
                return MoveValidation.reject(
                    f"Wrong suit - {card.suit} card cannot go on {suit} foundation"
                )
            return MoveValidation.accept()

        top = pile[-1]
        if card.suit != top.suit:
            return MoveValidation.reject(
                f"Wrong suit - {card.suit} card cannot go on {top.suit} foundation (must match)"
            )
        if card.rank != top.rank + 1:
            expected = rank_name(Rank(top.rank + 1)) if top.rank < Rank.KING else "nothing"
            return MoveValidation.reject(
                f"Wrong rank - expected {expected} of {suit}, got {rank_name(card.rank)} "
                "(foundation sequence: A,2,3,4,5,6,7,8,9,10,J,Q,K)"
            )
        return MoveValidation.accept()

    @staticmethod
    def _validate_to_tableau(moving: list[Card], column: list[Card], number: int) -> MoveValidation:
        first = moving[0]
        if not column:
            if first.rank != Rank.KING:
                return MoveValidation.reject(
                    f"Empty tableau column {number} can only accept Kings - cannot place {describe(first)}"
                )
        else:
            top = column[-1]
            if not top.face_up:
                return MoveValidation.reject(
                    f'Cannot place cards on face-down card in tableau {number} - flip it first with "f{number}"'
                )
            if first.rank != top.rank - 1:
                expected = rank_name(Rank(top.rank - 1)) if top.rank > Rank.ACE else "nothing"
                return MoveValidation.reject(
                    f"Cannot place {rank_name(first.rank)} on {rank_name(top.rank)} - expected {expected}. "
                    "Tableau builds down in rank (K→Q→J→10→9→8→7→6→5→4→3→2→A)."
                )
            if first.color == top.color:
                return MoveValidation.reject(
                    f"Wrong color - cannot place {first.color} {rank_name(first.rank)} on "
                    f"{top.color} {rank_name(top.rank)} (must alternate red/black)"
                )

        for upper, lower in zip(moving, moving[1:]):
            if not builds_on(lower, upper):
                return MoveValidation.reject(
                    f"Invalid sequence - {describe(lower)} cannot follow {describe(upper)}. "
                    "Only properly sequenced cards can be moved together."
                )
        return MoveValidation.accept()

    # --- application ---
    def apply_move(
        self, move: Any, board: SolitaireBoard, player_id: str, seats: Sequence[Seat]
    ) -> SolitaireBoard:
        validation = self.validate_move(move, board, player_id, seats)
        if not validation.ok:
            raise ValidationError(validation.error or "Invalid move")
        move = self.resolve(move, board)

        new_board = board.model_copy(deep=True)
        match move.action:
            case Action.DRAW_STOCK:
                drawn = min(new_board.draw_count, len(new_board.stock))
                cards = new_board.stock[-drawn:]
                del new_board.stock[-drawn:]
                new_board.waste.extend(card.flipped(True) for card in cards)
            case Action.RESET_STOCK:
                while new_board.waste:
                    new_board.stock.append(new_board.waste.pop().flipped(False))
            case Action.FLIP_CARD:
                column = new_board.pile(move.source)  # type: ignore[arg-type]
                column[-1] = column[-1].flipped(True)
            case Action.MOVE_CARD:
                source = new_board.pile(move.source)  # type: ignore[arg-type]
                moving = source[-move.card_count :]
                del source[-move.card_count :]
                new_board.pile(move.target).extend(moving)  # type: ignore[arg-type]

        new_board.history.append(
            {"move": move.to_dict(), "player_id": player_id, "timestamp": utc_now().isoformat()}
        )
        new_board.score = self.score_move(move, board, new_board, new_board.score)
        return new_board

    # --- scoring ---
    def move_score_event(
        self, move: MoveDescriptor, before: SolitaireBoard, after: SolitaireBoard
    ) -> Optional[ScoreEvent]:
        match move.action:
            case Action.FLIP_CARD:
                return ScoreEvent.move(FLIP_POINTS)
            case Action.RESET_STOCK:
                return ScoreEvent.penalty("stock_reset", RESET_PENALTY, "Stock pile reset penalty")
            case Action.MOVE_CARD if move.target and move.target.kind == PileKind.FOUNDATION:
                return ScoreEvent.move(FOUNDATION_POINTS)
            case Action.MOVE_CARD if move.source and move.source.kind == PileKind.FOUNDATION:
                return ScoreEvent.penalty(
                    "foundation_to_tableau",
                    FOUNDATION_TO_TABLEAU_PENALTY,
                    "Moving card from foundation to tableau",
                )
        return ScoreEvent.move()

    def completion_bonus(self, board: SolitaireBoard, score: ScoreRecord) -> int:
        bonus = 500
        minutes = (utc_now() - board.started_at).total_seconds() / 60
        if minutes < 10:
            bonus += 200
        elif minutes < 20:
            bonus += 100
        if len(board.history) < 200:
            bonus += 100
        return bonus

    def time_bonus(self, elapsed_seconds: float) -> int:
        minutes = elapsed_seconds / 60
        if minutes < 5:
            return 300
        if minutes < 10:
            return 150
        if minutes < 20:
            return 50
        return 0

    # --- lifecycle ---
    def is_complete(self, board: SolitaireBoard, seats: Sequence[Seat]) -> bool:
        return board.foundation_complete()

    def on_complete(
        self, board: SolitaireBoard, seats: Sequence[Seat], winner: Optional[str]
    ) -> SolitaireBoard:
        logger.info(f"Solitaire completed with {board.score.points} points before bonuses")
        return board.model_copy(update={"score": self.final_score(board, board.score)})

    # --- projections ---
    def render_projection(
        self, board: SolitaireBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        return {
            "tableau": [
                [card.code if card.face_up else "??" for card in column] for column in board.tableau
            ],
            "foundation": {
                suit: pile[-1].code if pile else None for suit, pile in board.foundation.items()
            },
            "stock": len(board.stock),
            "waste": [card.code for card in board.waste[-board.draw_count :]],
            "score": board.score.points,
            "moves": len(board.history),
            "game_complete": self.is_complete(board, seats),
        }

    def stats_projection(
        self, board: SolitaireBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        return super().stats_projection(board, seats) | {
            "foundation_cards": {suit: len(pile) for suit, pile in board.foundation.items()},
            "stock_size": len(board.stock),
            "waste_size": len(board.waste),
            "draw_count": board.draw_count,
        }
