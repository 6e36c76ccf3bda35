"""Klondike table layout and the card-run rules shared by validation and move sizing."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from gamehub.cards.cards import Card, Rank, Suit, shuffled_deck
from gamehub.cards.scoring import ScoreRecord
from gamehub.core.models import utc_now
from gamehub.solitaire.commands import TABLEAU_COLUMNS, Pile, PileKind

FOUNDATION_SIZE = len(Rank)


def empty_foundation() -> dict[str, list[Card]]:
    return {suit.value: [] for suit in Suit}


class SolitaireBoard(BaseModel):
    tableau: list[list[Card]]
    foundation: dict[str, list[Card]] = Field(default_factory=empty_foundation)
    stock: list[Card] = Field(default_factory=list)
    waste: list[Card] = Field(default_factory=list)
    draw_count: int = 3
    score: ScoreRecord = Field(default_factory=ScoreRecord)
    history: list[dict[str, Any]] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    seed: Optional[int] = None

    @field_validator("tableau")
    @classmethod
    def check_tableau(cls, tableau: list[list[Card]]) -> list[list[Card]]:
        if len(tableau) != TABLEAU_COLUMNS:
            raise ValueError(f"Tableau must have {TABLEAU_COLUMNS} columns")
        return tableau

    @field_validator("foundation")
    @classmethod
    def check_foundation(cls, foundation: dict[str, list[Card]]) -> dict[str, list[Card]]:
        if set(foundation) != {suit.value for suit in Suit}:
            raise ValueError("Foundation must have one pile per suit")
        return foundation

    def pile(self, location: Pile) -> list[Card]:
        """The live list behind a pile (mutating it mutates the board)."""
        match location.kind:
            case PileKind.TABLEAU:
                return self.tableau[location.column or 0]
            case PileKind.FOUNDATION:
                return self.foundation[str(location.suit)]
            case PileKind.WASTE:
                return self.waste
            case PileKind.STOCK:
                return self.stock
        raise ValueError(f"Unknown pile: {location}")

    def foundation_complete(self) -> bool:
        return all(len(pile) == FOUNDATION_SIZE for pile in self.foundation.values())


def deal(seed: Optional[int], draw_count: int) -> SolitaireBoard:
    """Column n gets n cards, only the last one face up. The rest of the deck is the stock."""
    deck = shuffled_deck(seed)
    tableau: list[list[Card]] = []
    position = 0
    for column in range(TABLEAU_COLUMNS):
        cards = deck[position : position + column + 1]
        position += column + 1
        tableau.append([card.flipped(i == column) for i, card in enumerate(cards)])

    stock = [card.flipped(False) for card in deck[position:]]
    return SolitaireBoard(tableau=tableau, stock=stock, draw_count=draw_count, seed=seed)


def describe(card: Card) -> str:
    return f"{card.rank.name.capitalize()} of {card.suit}"


def rank_name(rank: Rank) -> str:
    return rank.name.capitalize()


def builds_on(card: Card, below: Card) -> bool:
    """True if `card` may sit on `below` in a tableau column (one rank lower, other colour)."""
    return card.rank == below.rank - 1 and card.color != below.color


def max_movable_cards(column: list[Card]) -> int:
    """Length of the face-up, alternating-colour, descending run at the bottom of the column."""
    count = 0
    for i in range(len(column) - 1, -1, -1):
        card = column[i]
        if not card.face_up:
            break
        if i < len(column) - 1 and not builds_on(column[i + 1], card):
            break
        count += 1
    return count


def default_move_size(source: list[Card]) -> int:
    """Cards carried by a tableau move with no explicit count: the whole movable run, at least one."""
    return max(max_movable_cards(source), 1)
