"""
Hearts for four players.

A round: deal 13 cards each, pass three cards (left, right, across, or hold on every fourth round),
then play 13 tricks. The holder of the two of clubs leads the first trick. Each heart taken costs a
point and the queen of spades 13; taking all 26 points ("shooting the moon") instead gives 26 to
every other player. The game ends when someone reaches the target score; the lowest score wins.

Seats are addressed by index (0-3) in seat order inside the board state.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from gamehub.cards.cards import Card, Rank, Suit, find_card, shuffled_deck
from gamehub.core.exceptions import ValidationError
from gamehub.core.models import MovePayload, Seat
from gamehub.core.shared_types import GameType
from gamehub.plugins.base import GamePlugin, MoveValidation, seats_in_order

logger = logging.getLogger(__name__)

PLAYER_COUNT = 4
HAND_SIZE = 13
PASS_SIZE = 3
MOON_POINTS = 26
PASS_DIRECTIONS = ("left", "right", "across", "none")
# seat index offset of the receiver, per passing direction
PASS_OFFSETS = {"left": 1, "right": 3, "across": 2}

TWO_OF_CLUBS = Card(suit=Suit.CLUBS, rank=Rank.TWO, face_up=True)
QUEEN_OF_SPADES = Card(suit=Suit.SPADES, rank=Rank.QUEEN, face_up=True)

Phase = Literal["passing", "playing", "game_complete"]


class TrickPlay(BaseModel):
    seat: int
    card: Card


class Trick(BaseModel):
    leader: int = 0
    plays: list[TrickPlay] = Field(default_factory=list)
    winner: Optional[int] = None

    @property
    def led_suit(self) -> Optional[Suit]:
        return self.plays[0].card.suit if self.plays else None


class HeartsBoard(BaseModel):
    phase: Phase = "passing"
    hands: list[list[Card]]
    passed_cards: list[list[Card]] = Field(default_factory=lambda: [[] for _ in range(PLAYER_COUNT)])
    current_trick: Trick = Field(default_factory=Trick)
    last_trick: Optional[Trick] = None
    tricks_played: int = 0
    tricks_won: list[int] = Field(default_factory=lambda: [0] * PLAYER_COUNT)
    hearts_broken: bool = False
    round_scores: list[int] = Field(default_factory=lambda: [0] * PLAYER_COUNT)
    scores: list[int] = Field(default_factory=lambda: [0] * PLAYER_COUNT)
    passing_direction: Literal["left", "right", "across", "none"] = "left"
    round_number: int = 1
    target_score: int = 100
    seed: Optional[int] = None


@dataclass(frozen=True)
class HeartsMove:
    type: str
    cards: tuple[Card, ...] = ()

    @property
    def card(self) -> Optional[Card]:
        return self.cards[0] if self.cards else None


def points_of(card: Card) -> int:
    if card.suit == Suit.HEARTS:
        return 1
    if card.same_card(QUEEN_OF_SPADES):
        return 13
    return 0


def describe(card: Card) -> str:
    return f"{card.rank.label} of {card.suit}"


def card_from_payload(raw: Any) -> Card:
    """Card from 'QS' / '10H' or {"suit": "spades", "rank": "Q"}."""
    if isinstance(raw, Card):
        return raw.flipped()
    if isinstance(raw, str):
        return Card.from_code(raw)
    if isinstance(raw, dict):
        suit, rank = raw.get("suit"), raw.get("rank")
        if not isinstance(suit, str) or rank is None:
            raise ValidationError("A card needs a suit and a rank")
        try:
            suit_value = Suit(suit.lower()) if len(suit) > 1 else Suit.from_letter(suit)
        except ValueError:
            raise ValidationError(f"Unknown suit: {suit!r}") from None
        if isinstance(rank, int):
            if not 1 <= rank <= 13:
                raise ValidationError(f"Unknown rank: {rank!r}")
            rank_value = Rank(rank)
        else:
            rank_value = Rank.from_label(str(rank))
        return Card(suit=suit_value, rank=rank_value, face_up=True)
    raise ValidationError("Must specify card to play")


def deal(seed: Optional[int]) -> list[list[Card]]:
    deck = shuffled_deck(seed, face_up=True)
    hands = [deck[i * HAND_SIZE : (i + 1) * HAND_SIZE] for i in range(PLAYER_COUNT)]
    return [sorted(hand, key=lambda c: (list(Suit).index(c.suit), c.rank.high_value)) for hand in hands]


def holder_of(hands: list[list[Card]], target: Card) -> int:
    return next(i for i, hand in enumerate(hands) if find_card(hand, target) is not None)


class HeartsPlugin(GamePlugin[HeartsBoard]):
    """
    Settings:
        target_score: score that ends the game (defaults to the registry setting)
        seed: shuffle seed, for reproducible deals
    """

    game_type = GameType.HEARTS
    display_name = "Hearts"
    description = "Four-player trick-taking card game where you avoid hearts and the queen of spades"
    min_seats = PLAYER_COUNT
    max_seats = PLAYER_COUNT
    force_start_seats = PLAYER_COUNT
    roles = ("north", "east", "south", "west")
    complexity = "Medium"
    categories = ("Card Game", "Trick-taking", "Classic")
    board_model = HeartsBoard

    TEXT_PATTERN = re.compile(r"^(pass|play)\s+(.+)$", re.IGNORECASE)

    def __init__(self, target_score: int = 100) -> None:
        self.target_score = target_score

    def initial_board_state(self, settings: dict[str, Any]) -> HeartsBoard:
        seed = settings.get("seed")
        target_score = settings.get("target_score", self.target_score)
        if not isinstance(target_score, int) or target_score < 1:
            raise ValidationError("target_score must be a positive integer")
        if seed is not None and not isinstance(seed, int):
            raise ValidationError("seed must be an integer")
        return HeartsBoard(
            hands=deal(self._round_seed(seed, 1)),
            target_score=target_score,
            seed=seed,
        )

    @staticmethod
    def _round_seed(seed: Optional[int], round_number: int) -> Optional[int]:
        return None if seed is None else seed * 100 + round_number

    # --- moves ---
    def parse_move(self, raw: MovePayload) -> HeartsMove:
        if isinstance(raw, str):
            match = self.TEXT_PATTERN.match(raw.strip())
            if not match:
                raise ValidationError("Use 'pass QS KH 2C' or 'play 10H'")
            move_type, cards = match.group(1).lower(), match.group(2).split()
            return HeartsMove(move_type, tuple(card_from_payload(code) for code in cards))

        if isinstance(raw, dict):
            move_type = str(raw.get("type", "")).lower()
            if move_type == "pass":
                cards = raw.get("cards")
                if not isinstance(cards, list):
                    raise ValidationError("Must pass exactly 3 cards")
                return HeartsMove("pass", tuple(card_from_payload(card) for card in cards))
            if move_type == "play":
                return HeartsMove("play", (card_from_payload(raw.get("card")),))
            raise ValidationError("Move type must be 'pass' or 'play'")

        raise ValidationError("Invalid move format")

    def validate_move(
        self, move: Any, board: HeartsBoard, player_id: str, seats: Sequence[Seat]
    ) -> MoveValidation:
        if not isinstance(move, HeartsMove):
            return MoveValidation.reject("Invalid move format")

        index = self._seat_index(player_id, seats)
        if index is None:
            return MoveValidation.reject("Player not in game")

        if board.phase == "passing":
            return self._validate_pass(move, board, index)
        if board.phase == "playing":
            return self._validate_play(move, board, index)
        return MoveValidation.reject("Game is over")

    @staticmethod
    def _validate_pass(move: HeartsMove, board: HeartsBoard, index: int) -> MoveValidation:
        if move.type != "pass":
            return MoveValidation.reject("Must specify pass move type")
        if len(move.cards) != PASS_SIZE:
            return MoveValidation.reject("Must pass exactly 3 cards")
        if board.passed_cards[index]:
            return MoveValidation.reject("Already passed cards this round")

        for card in move.cards:
            if find_card(board.hands[index], card) is None:
                return MoveValidation.reject(f"Don't have card: {describe(card)}")

        if len({(card.suit, card.rank) for card in move.cards}) != PASS_SIZE:
            return MoveValidation.reject("Cannot pass duplicate cards")
        return MoveValidation.accept()

    def _validate_play(self, move: HeartsMove, board: HeartsBoard, index: int) -> MoveValidation:
        if move.type != "play":
            return MoveValidation.reject("Must specify play move type")
        card = move.card
        if card is None:
            return MoveValidation.reject("Must specify card to play")

        hand = board.hands[index]
        if find_card(hand, card) is None:
            return MoveValidation.reject(f"Don't have card: {describe(card)}")

        if self.expected_seat(board) != index:
            return MoveValidation.reject("Not your turn")

        first_trick = board.tricks_played == 0
        led_suit = board.current_trick.led_suit

        if led_suit is None:
            if first_trick and not card.same_card(TWO_OF_CLUBS):
                return MoveValidation.reject("First trick must start with 2 of clubs")
            if card.suit == Suit.HEARTS and not board.hearts_broken:
                if any(c.suit != Suit.HEARTS for c in hand):
                    return MoveValidation.reject("Cannot lead with hearts until hearts are broken")
            return MoveValidation.accept()

        if card.suit != led_suit and any(c.suit == led_suit for c in hand):
            return MoveValidation.reject(f"Must follow suit ({led_suit})")

        if first_trick and points_of(card) > 0:
            # unless the hand holds nothing else
            if any(points_of(c) == 0 for c in hand):
                return MoveValidation.reject(
                    "Cannot play hearts or queen of spades on first trick"
                )
        return MoveValidation.accept()

    def apply_move(
        self, move: Any, board: HeartsBoard, player_id: str, seats: Sequence[Seat]
    ) -> HeartsBoard:
        validation = self.validate_move(move, board, player_id, seats)
        if not validation.ok:
            raise ValidationError(validation.error or "Invalid move")
        index = self._seat_index(player_id, seats)
        assert index is not None

        new_board = board.model_copy(deep=True)
        if new_board.phase == "passing":
            self._apply_pass(move, new_board, index)
        else:
            self._apply_play(move, new_board, index)
        return new_board

    def _apply_pass(self, move: HeartsMove, board: HeartsBoard, index: int) -> None:
        hand = board.hands[index]
        for card in move.cards:
            position = find_card(hand, card)
            assert position is not None
            hand.pop(position)
        board.passed_cards[index] = list(move.cards)

        if all(len(passed) == PASS_SIZE for passed in board.passed_cards):
            offset = PASS_OFFSETS[board.passing_direction]
            for giver, passed in enumerate(board.passed_cards):
                board.hands[(giver + offset) % PLAYER_COUNT].extend(passed)
            board.passed_cards = [[] for _ in range(PLAYER_COUNT)]
            self._start_play(board)

    @staticmethod
    def _start_play(board: HeartsBoard) -> None:
        board.phase = "playing"
        board.current_trick = Trick(leader=holder_of(board.hands, TWO_OF_CLUBS))

    def _apply_play(self, move: HeartsMove, board: HeartsBoard, index: int) -> None:
        card = move.card
        assert card is not None
        hand = board.hands[index]
        position = find_card(hand, card)
        assert position is not None
        played = hand.pop(position)

        board.current_trick.plays.append(TrickPlay(seat=index, card=played))
        if played.suit == Suit.HEARTS:
            board.hearts_broken = True

        if len(board.current_trick.plays) == PLAYER_COUNT:
            self._complete_trick(board)

    def _complete_trick(self, board: HeartsBoard) -> None:
        trick = board.current_trick
        led_suit = trick.led_suit
        winning = max(
            (play for play in trick.plays if play.card.suit == led_suit),
            key=lambda play: play.card.rank.high_value,
        )
        trick.winner = winning.seat

        board.round_scores[winning.seat] += sum(points_of(play.card) for play in trick.plays)
        board.tricks_won[winning.seat] += 1
        board.tricks_played += 1
        board.last_trick = trick
        board.current_trick = Trick(leader=winning.seat)

        if board.tricks_played == HAND_SIZE:
            self._complete_round(board)

    def _complete_round(self, board: HeartsBoard) -> None:
        if MOON_POINTS in board.round_scores:
            shooter = board.round_scores.index(MOON_POINTS)
            logger.info(f"Seat {shooter} shot the moon in round {board.round_number}")
            for seat in range(PLAYER_COUNT):
                if seat != shooter:
                    board.scores[seat] += MOON_POINTS
        else:
            for seat in range(PLAYER_COUNT):
                board.scores[seat] += board.round_scores[seat]

        direction = PASS_DIRECTIONS[(PASS_DIRECTIONS.index(board.passing_direction) + 1) % 4]
        board.passing_direction = direction  # type: ignore[assignment]

        if any(score >= board.target_score for score in board.scores):
            board.phase = "game_complete"
            return

        board.round_number += 1
        board.hands = deal(self._round_seed(board.seed, board.round_number))
        board.round_scores = [0] * PLAYER_COUNT
        board.tricks_won = [0] * PLAYER_COUNT
        board.tricks_played = 0
        board.hearts_broken = False
        if direction == "none":
            self._start_play(board)
        else:
            board.phase = "passing"
            board.current_trick = Trick()

    # --- turn order ---
    @staticmethod
    def expected_seat(board: HeartsBoard) -> int:
        """Index of the seat due to play a card."""
        trick = board.current_trick
        if not trick.plays:
            return trick.leader
        return (trick.plays[-1].seat + 1) % PLAYER_COUNT

    @staticmethod
    def _seat_index(player_id: str, seats: Sequence[Seat]) -> Optional[int]:
        ordered = [seat.user_id for seat in seats_in_order(seats)]
        return ordered.index(player_id) if player_id in ordered else None

    def first_player(self, seats: Sequence[Seat], board: HeartsBoard) -> str:
        ordered = seats_in_order(seats)
        if board.phase == "playing":
            return ordered[self.expected_seat(board)].user_id
        return ordered[0].user_id

    def next_player(
        self, current_player_id: str, seats: Sequence[Seat], board: HeartsBoard
    ) -> str:
        ordered = seats_in_order(seats)
        if board.phase == "passing":
            start = self._seat_index(current_player_id, seats) or 0
            for step in range(1, PLAYER_COUNT + 1):
                candidate = (start + step) % PLAYER_COUNT
                if not board.passed_cards[candidate]:
                    return ordered[candidate].user_id
        if board.phase == "playing":
            return ordered[self.expected_seat(board)].user_id
        return current_player_id

    # --- completion ---
    def is_complete(self, board: HeartsBoard, seats: Sequence[Seat]) -> bool:
        return board.phase == "game_complete"

    def winner(self, board: HeartsBoard, seats: Sequence[Seat]) -> Optional[str]:
        if not self.is_complete(board, seats):
            return None
        lowest = board.scores.index(min(board.scores))
        return seats_in_order(seats)[lowest].user_id

    # --- projections ---
    def render_projection(
        self, board: HeartsBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        ordered = [seat.user_id for seat in seats_in_order(seats)]
        return {
            "phase": board.phase,
            "passing_direction": board.passing_direction,
            "round_number": board.round_number,
            "hand_sizes": dict(zip(ordered, (len(hand) for hand in board.hands))),
            "current_trick": [
                {"player_id": ordered[play.seat], "card": play.card.code}
                for play in board.current_trick.plays
            ],
            "hearts_broken": board.hearts_broken,
            "scores": dict(zip(ordered, board.scores)),
        }

    def stats_projection(
        self, board: HeartsBoard, seats: Sequence[Seat]
    ) -> dict[str, Any]:
        ordered = [seat.user_id for seat in seats_in_order(seats)]
        return super().stats_projection(board, seats) | {
            "round_number": board.round_number,
            "tricks_played": board.tricks_played,
            "scores": dict(zip(ordered, board.scores)),
            "round_scores": dict(zip(ordered, board.round_scores)),
            "target_score": board.target_score,
        }
