"""Card values and the deck of cards still unseen in a hand."""

from __future__ import annotations

import random
from enum import IntEnum, Enum
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from handflow.engine import EngineState


class Suit(str, Enum):
    HEARTS = "h"
    DIAMONDS = "d"
    CLUBS = "c"
    SPADES = "s"


class Rank(IntEnum):
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
    ACE = 14


RANK_SYMBOLS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

_SYMBOL_RANKS = {v: k for k, v in RANK_SYMBOLS.items()}


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{RANK_SYMBOLS[self.rank]}{self.suit.value}"

    def to_dict(self) -> dict:
        return {"rank": self.rank.value, "suit": self.suit.value}

    @classmethod
    def from_dict(cls, data: dict) -> Card:
        return cls(rank=Rank(data["rank"]), suit=Suit(data["suit"]))

    @classmethod
    def from_str(cls, s: str) -> Card:
        """Parse 'Ah', 'Ts', '2c' etc."""
        if len(s) != 2:
            raise ValueError(f"Invalid card: {s!r}")
        rank_char = s[0].upper()
        suit_char = s[1].lower()
        if rank_char not in _SYMBOL_RANKS:
            raise ValueError(f"Invalid rank in card: {s!r}")
        return cls(rank=_SYMBOL_RANKS[rank_char], suit=Suit(suit_char))


class Deck:
    """The 52-card deck minus every card already known in the hand.

    Nothing is dealt by the engine itself; the deck only backs the
    "random fill" of the card pickers, so dealing past the end returns
    whatever is left instead of raising.
    """

    def __init__(self, exclude: Iterable[Card] = ()) -> None:
        used = set(exclude)
        self._cards: list[Card] = [
            Card(rank=rank, suit=suit)
            for suit in Suit
            for rank in Rank
            if Card(rank=rank, suit=suit) not in used
        ]
        self.shuffle()

    def shuffle(self) -> None:
        random.shuffle(self._cards)

    def deal(self, n: int = 1) -> list[Card]:
        dealt = self._cards[:n]
        self._cards = self._cards[n:]
        return dealt

    @property
    def remaining(self) -> int:
        return len(self._cards)


def known_cards(state: EngineState) -> set[Card]:
    """Every card already visible: hero hole cards, board slots, showdown reveals."""
    seen: set[Card] = set()
    if state.hole_cards:
        seen.update(state.hole_cards)
    for slots in state.boards.values():
        seen.update(c for c in slots if c is not None)
    for record in state.showdown_records:
        if record.cards:
            seen.update(record.cards)
    return seen
