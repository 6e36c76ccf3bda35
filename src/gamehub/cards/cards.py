"""
Playing cards shared by the card-game plugins.

Cards are pydantic models so that piles serialize straight into a board state.
"""

import random
from enum import IntEnum, StrEnum
from typing import Optional, Self

from pydantic import BaseModel, ConfigDict

from gamehub.core.exceptions import ValidationError


class Color(StrEnum):
    RED = "red"
    BLACK = "black"


class Suit(StrEnum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def color(self) -> Color:
        return Color.RED if self in (Suit.HEARTS, Suit.DIAMONDS) else Color.BLACK

    @property
    def letter(self) -> str:
        return self.value[0].upper()

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @classmethod
    def from_letter(cls, letter: str) -> Self:
        for suit in cls:
            if suit.letter == letter.upper():
                return suit
        raise ValidationError(f"Unknown suit: {letter!r}")


_SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}


class Rank(IntEnum):
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def label(self) -> str:
        return _RANK_LABELS.get(self, str(self.value))

    @property
    def high_value(self) -> int:
        """Value with the ace ranked above the king (trick-taking games)."""
        return 14 if self == Rank.ACE else self.value

    @classmethod
    def from_label(cls, label: str) -> Self:
        label = label.upper()
        for rank, text in _RANK_LABELS.items():
            if text == label:
                return cls(rank)
        if label.isdigit() and 2 <= int(label) <= 10:
            return cls(int(label))
        raise ValidationError(f"Unknown rank: {label!r}")


_RANK_LABELS = {Rank.ACE: "A", Rank.JACK: "J", Rank.QUEEN: "Q", Rank.KING: "K"}


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def color(self) -> Color:
        return self.suit.color

    @property
    def code(self) -> str:
        """Compact text form, e.g. `QS`, `10H`."""
        return f"{self.rank.label}{self.suit.letter}"

    def flipped(self, face_up: bool = True) -> Self:
        return self.model_copy(update={"face_up": face_up})

    def same_card(self, other: "Card") -> bool:
        return self.suit == other.suit and self.rank == other.rank

    @classmethod
    def from_code(cls, code: str, face_up: bool = True) -> Self:
        """Parse `QS`, `10h`, `AH`. The last character is the suit letter."""
        text = code.strip()
        if len(text) < 2:
            raise ValidationError(f"Cannot read card {code!r}. Use rank then suit, e.g. QS or 10H")
        return cls(suit=Suit.from_letter(text[-1]), rank=Rank.from_label(text[:-1]), face_up=face_up)

    def __str__(self) -> str:
        return f"{self.rank.label}{self.suit.symbol}"


def standard_deck(face_up: bool = False) -> list[Card]:
    """52 cards, suit by suit, ace to king."""
    return [Card(suit=suit, rank=rank, face_up=face_up) for suit in Suit for rank in Rank]


def shuffled_deck(seed: Optional[int] = None, face_up: bool = False) -> list[Card]:
    deck = standard_deck(face_up)
    random.Random(seed).shuffle(deck)
    return deck


def find_card(cards: list[Card], target: Card) -> Optional[int]:
    return next((i for i, card in enumerate(cards) if card.same_card(target)), None)
