"""
Command language for patience moves.

Players type terse shorthand (`d`, `wh`, `2-5 x3`) or the verbose form (`waste to foundation hearts`).
Input is lower-cased and matched against RULES in order; the first rule that matches wins. The
order settles the ambiguous shorthand:

    d      stock draw (rule 1), while d7 is foundation diamonds -> tableau 7 (rule 8)
           and 3d is tableau 3 -> foundation diamonds (rule 5)
    wh     waste -> foundation hearts (rule 4), while w5 is waste -> tableau 5 (rule 7)
    2-5    tableau 2 -> tableau 5; without the dash ("25") nothing matches
"""

import re
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Callable, Optional, Self

from gamehub.cards.cards import Suit
from gamehub.core.exceptions import ValidationError
from gamehub.core.models import MovePayload

TABLEAU_COLUMNS = 7

ACCEPTED_SHORTHAND = (
    "d (draw), r (reset), f1-f7 (flip), wh/wd/wc/ws (waste to foundation), "
    "w1-w7 (waste to tableau), 1h-7s (tableau to foundation), "
    "1-7 or 1-7 x3 (tableau to tableau), h1-s7 (foundation to tableau)"
)


class Action(StrEnum):
    DRAW_STOCK = "draw_stock"
    RESET_STOCK = "reset_stock"
    FLIP_CARD = "flip_card"
    MOVE_CARD = "move_card"


class PileKind(StrEnum):
    TABLEAU = "tableau"
    FOUNDATION = "foundation"
    WASTE = "waste"
    STOCK = "stock"


@dataclass(frozen=True)
class Pile:
    """A pile on the table. Tableau columns are 0-based."""

    kind: PileKind
    column: Optional[int] = None
    suit: Optional[Suit] = None

    @classmethod
    def tableau(cls, column: int) -> Self:
        return cls(PileKind.TABLEAU, column=column)

    @classmethod
    def foundation(cls, suit: Suit) -> Self:
        return cls(PileKind.FOUNDATION, suit=suit)

    @classmethod
    def waste(cls) -> Self:
        return cls(PileKind.WASTE)

    def describe(self) -> str:
        match self.kind:
            case PileKind.TABLEAU:
                return f"tableau column {(self.column or 0) + 1}"
            case PileKind.FOUNDATION:
                return f"{self.suit} foundation"
            case _:
                return f"{self.kind} pile"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": str(self.kind)}
        if self.column is not None:
            data["column"] = self.column
        if self.suit is not None:
            data["suit"] = str(self.suit)
        return data


@dataclass(frozen=True)
class MoveDescriptor:
    """
    Canonical form of a patience move.

    card_count is 1 unless the player wrote `xN` (count_explicit). For tableau-to-tableau moves
    without an explicit count the plugin works out how many cards to carry.
    """

    action: Action
    source: Optional[Pile] = None
    target: Optional[Pile] = None
    card_count: int = 1
    count_explicit: bool = False

    def with_count(self, card_count: int) -> Self:
        return replace(self, card_count=card_count, count_explicit=True)

    @property
    def is_tableau_transfer(self) -> bool:
        return (
            self.source is not None
            and self.target is not None
            and self.source.kind == PileKind.TABLEAU
            and self.target.kind == PileKind.TABLEAU
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": str(self.action)}
        if self.source is not None:
            data["from"] = self.source.to_dict()
        if self.target is not None:
            data["to"] = self.target.to_dict()
        if self.action == Action.MOVE_CARD:
            data["cardCount"] = self.card_count
        return data


# --- helpers ---
SUIT_WORD = r"(hearts?|diamonds?|clubs?|spades?)"
SUIT_LETTER = r"([hdcs])"


def parse_suit(word: str) -> Suit:
    """'h', 'heart', 'hearts' -> Suit.HEARTS"""
    word = word.lower()
    for suit in Suit:
        if word in (suit.value, suit.value.rstrip("s"), suit.value[0]):
            return suit
    raise ValidationError(f"Unknown suit: {word!r}")


def parse_column(text: str) -> int:
    column = int(text)
    if not 1 <= column <= TABLEAU_COLUMNS:
        raise ValidationError(f"Invalid tableau column (must be 1-{TABLEAU_COLUMNS})")
    return column - 1


def parse_count(text: Optional[str]) -> tuple[int, bool]:
    if text is None:
        return 1, False
    count = int(text)
    if count < 1:
        raise ValidationError("Card count must be at least 1")
    return count, True


def _first(match: re.Match[str], *groups: int) -> str:
    return next(match.group(g) for g in groups if match.group(g) is not None)


# --- rules, in priority order ---
def _draw(match: re.Match[str]) -> MoveDescriptor:
    return MoveDescriptor(Action.DRAW_STOCK)


def _reset(match: re.Match[str]) -> MoveDescriptor:
    return MoveDescriptor(Action.RESET_STOCK)


def _flip(match: re.Match[str]) -> MoveDescriptor:
    return MoveDescriptor(Action.FLIP_CARD, source=Pile.tableau(parse_column(_first(match, 1, 2))))


def _waste_to_foundation(match: re.Match[str]) -> MoveDescriptor:
    suit = parse_suit(_first(match, 1, 2))
    return MoveDescriptor(Action.MOVE_CARD, Pile.waste(), Pile.foundation(suit))


def _tableau_to_foundation(match: re.Match[str]) -> MoveDescriptor:
    column = parse_column(_first(match, 1, 3))
    suit = parse_suit(_first(match, 2, 4))
    return MoveDescriptor(Action.MOVE_CARD, Pile.tableau(column), Pile.foundation(suit))


def _tableau_to_tableau(match: re.Match[str]) -> MoveDescriptor:
    source = parse_column(_first(match, 1, 3, 5))
    target = parse_column(_first(match, 2, 4, 6))
    count, explicit = parse_count(match.group(7))
    return MoveDescriptor(
        Action.MOVE_CARD, Pile.tableau(source), Pile.tableau(target), count, explicit
    )


def _waste_to_tableau(match: re.Match[str]) -> MoveDescriptor:
    column = parse_column(_first(match, 1, 2))
    return MoveDescriptor(Action.MOVE_CARD, Pile.waste(), Pile.tableau(column))


def _foundation_to_tableau(match: re.Match[str]) -> MoveDescriptor:
    suit = parse_suit(_first(match, 1, 3))
    column = parse_column(_first(match, 2, 4))
    return MoveDescriptor(Action.MOVE_CARD, Pile.foundation(suit), Pile.tableau(column))


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], MoveDescriptor]


RULES: tuple[Rule, ...] = (
    Rule("draw stock", re.compile(r"^(?:d|draw|draw stock)$"), _draw),
    Rule("reset stock", re.compile(r"^(?:r|reset|reset stock)$"), _reset),
    Rule(
        "flip",
        re.compile(r"^(?:f\s*(\d+)|flip\s+(?:tableau\s*)?(\d+))$"),
        _flip,
    ),
    Rule(
        "waste to foundation",
        re.compile(rf"^(?:w\s*{SUIT_LETTER}|waste\s+to\s+foundation\s+{SUIT_WORD})$"),
        _waste_to_foundation,
    ),
    Rule(
        "tableau to foundation",
        re.compile(
            rf"^(?:(\d+)\s*{SUIT_LETTER}|tableau\s*(\d+)\s+to\s+foundation\s+{SUIT_WORD})$"
        ),
        _tableau_to_foundation,
    ),
    Rule(
        "tableau to tableau",
        re.compile(
            r"^(?:(\d+)\s*-\s*(\d+)|(\d+)\s+to\s+(\d+)|tableau\s*(\d+)\s+to\s+tableau\s*(\d+))"
            r"(?:\s*x\s*(\d+))?$"
        ),
        _tableau_to_tableau,
    ),
    Rule(
        "waste to tableau",
        re.compile(r"^(?:w\s*(\d+)|waste\s+to\s+tableau\s*(\d+))$"),
        _waste_to_tableau,
    ),
    Rule(
        "foundation to tableau",
        re.compile(
            rf"^(?:{SUIT_LETTER}\s*(\d+)|foundation\s+{SUIT_WORD}\s+to\s+tableau\s*(\d+))$"
        ),
        _foundation_to_tableau,
    ),
)


def parse_command(text: str) -> MoveDescriptor:
    """Parse typed input into a MoveDescriptor. Raises ValidationError when no rule matches."""
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Move cannot be empty")

    clean = " ".join(text.strip().lower().split())
    for rule in RULES:
        match = rule.pattern.match(clean)
        if match:
            return rule.build(match)

    raise ValidationError(
        f'Unrecognized move format: "{text.strip()}". Accepted shorthand: {ACCEPTED_SHORTHAND}'
    )


def _pile_from_mapping(data: Any) -> Pile:
    if not isinstance(data, dict):
        raise ValidationError("Move must specify from and to locations")
    try:
        kind = PileKind(str(data.get("type", "")).lower())
    except ValueError:
        raise ValidationError(f"Unknown pile type: {data.get('type')!r}") from None

    column = data.get("column")
    suit = data.get("suit")
    if kind == PileKind.TABLEAU:
        if not isinstance(column, int) or not 0 <= column < TABLEAU_COLUMNS:
            raise ValidationError(f"Invalid tableau column (must be 1-{TABLEAU_COLUMNS})")
        return Pile.tableau(column)
    if kind == PileKind.FOUNDATION:
        if not isinstance(suit, str):
            raise ValidationError("Foundation moves must name a suit")
        return Pile.foundation(parse_suit(suit))
    return Pile(kind)


def descriptor_from_mapping(data: dict[str, Any]) -> MoveDescriptor:
    """Structured moves: {"action": "move_card", "from": {...}, "to": {...}, "cardCount": 2}"""
    try:
        action = Action(str(data.get("action", "")).lower())
    except ValueError:
        raise ValidationError(f"Unknown action: {data.get('action')!r}") from None

    if action in (Action.DRAW_STOCK, Action.RESET_STOCK):
        return MoveDescriptor(action)
    if action == Action.FLIP_CARD:
        return MoveDescriptor(action, source=_pile_from_mapping(data.get("from")))

    raw_count = data.get("cardCount", data.get("card_count"))
    if raw_count is not None and (not isinstance(raw_count, int) or raw_count < 1):
        raise ValidationError("Card count must be at least 1")
    return MoveDescriptor(
        action,
        _pile_from_mapping(data.get("from")),
        _pile_from_mapping(data.get("to")),
        raw_count or 1,
        raw_count is not None,
    )


def parse_move_payload(raw: MovePayload) -> MoveDescriptor:
    if isinstance(raw, dict):
        return descriptor_from_mapping(raw)
    return parse_command(raw)
