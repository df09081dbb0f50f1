"""Pydantic models for table configuration, hand records and API requests."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from handflow.cards import Card

MAX_SEATS = 10


class Street(str, Enum):
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"


STREETS: list[Street] = [Street.PREFLOP, Street.FLOP, Street.TURN, Street.RIVER]

# Board slots per street; preflop has none.
BOARD_SLOTS: dict[Street, int] = {Street.FLOP: 3, Street.TURN: 1, Street.RIVER: 1}


class Phase(str, Enum):
    HOLE_CARDS = "hole_cards"
    ACTION = "action"
    BOARD_INPUT = "board_input"
    SHOWDOWN = "showdown"
    WINNER = "winner"
    DONE = "done"


class ActionKind(str, Enum):
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    ALL_IN = "allin"
    STRADDLE = "straddle"


AGGRESSIVE_KINDS = frozenset({ActionKind.BET, ActionKind.RAISE, ActionKind.ALL_IN})


# --- Table configuration ---


class Seat(BaseModel):
    """One player at the table. Position 0 is the button, 1 SB, 2 BB, 3.. the rest."""

    id: str = Field(..., min_length=1, max_length=40)
    label: str = Field(..., min_length=1, max_length=20)
    stack: int = Field(default=0, ge=0)  # 0 = unknown
    position: int = Field(..., ge=0, lt=MAX_SEATS)


class TableConfig(BaseModel):
    seats: list[Seat] = Field(..., min_length=2, max_length=MAX_SEATS)
    small_blind: int = Field(default=1, ge=0)
    big_blind: int = Field(default=2, ge=1)
    ante: int = Field(default=0, ge=0)  # 0 = no ante
    hero_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_layout(self) -> TableConfig:
        ids = [s.id for s in self.seats]
        if len(set(ids)) != len(ids):
            raise ValueError("Seat ids must be unique")
        positions = sorted(s.position for s in self.seats)
        if positions != list(range(len(self.seats))):
            raise ValueError("Seat positions must be 0..n-1 with no gaps")
        if self.big_blind < self.small_blind:
            raise ValueError("Big blind must be at least the small blind")
        if self.hero_id is not None and self.hero_id not in ids:
            raise ValueError("Hero must be one of the seats")
        self.seats = sorted(self.seats, key=lambda s: s.position)
        return self

    @property
    def player_ids(self) -> list[str]:
        """Seat ids in position order (button first)."""
        return [s.id for s in self.seats]

    def seat(self, player_id: str) -> Optional[Seat]:
        for s in self.seats:
            if s.id == player_id:
                return s
        return None


# --- Hand records ---


class ActionRecord(BaseModel):
    player_id: str
    label: str
    kind: ActionKind
    amount: Optional[int] = None
    street: Street


class ShowdownRecord(BaseModel):
    player_id: str
    action: Literal["show", "muck"]
    cards: Optional[tuple[Card, Card]] = None

    @model_validator(mode="after")
    def _cards_match_action(self) -> ShowdownRecord:
        if self.action == "show" and self.cards is None:
            raise ValueError("A shown hand needs both hole cards")
        if self.action == "muck" and self.cards is not None:
            raise ValueError("A mucked hand reveals no cards")
        return self


# --- Closing-player rules ---


class FixedClose(BaseModel):
    """A seat that closes the street by position (big blind, or the straddler)."""

    kind: Literal["fixed"] = "fixed"
    seat_id: str


class AfterAggressorClose(BaseModel):
    """The seat acting just before the last bettor closes the street."""

    kind: Literal["after_aggressor"] = "after_aggressor"
    seat_id: str


class LapDetect(BaseModel):
    """No closing seat; the street ends after a full lap of the rotation."""

    kind: Literal["lap"] = "lap"


ClosingRule = Annotated[
    Union[FixedClose, AfterAggressorClose, LapDetect], Field(discriminator="kind")
]


def closing_seat(rule: Union[FixedClose, AfterAggressorClose, LapDetect]) -> Optional[str]:
    if isinstance(rule, LapDetect):
        return None
    return rule.seat_id


# --- Request models ---


class CreateHandRequest(BaseModel):
    table: TableConfig


class HoleCardsRequest(BaseModel):
    cards: tuple[Card, Card]


class ActionRequest(BaseModel):
    kind: ActionKind
    amount: Optional[int] = Field(default=None, ge=0)


class BoardSlotRequest(BaseModel):
    street: Literal["flop", "turn", "river"]
    slot: int = Field(..., ge=0, le=2)
    card: Optional[Card] = None


class WinnerRequest(BaseModel):
    player_id: str


# --- Response models ---


class CreateHandResponse(BaseModel):
    code: str
    hand: dict
