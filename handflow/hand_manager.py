"""In-memory registry of hands being recorded.

Every operation on a hand runs under that hand's lock, so the engine only
ever sees one call at a time and each call's history push lands before
the next call starts. Hands live only in process memory.
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from handflow.cards import Card
from handflow.history import HandFlow
from handflow.models import (
    ActionKind,
    CreateHandRequest,
    Phase,
    ShowdownRecord,
    Street,
)

logger = logging.getLogger(__name__)


@dataclass
class HandSession:
    code: str
    flow: HandFlow
    last_activity: float = field(default_factory=time.time)

    @property
    def finished(self) -> bool:
        return self.flow.state.phase == Phase.DONE

    def touch(self) -> None:
        self.last_activity = time.time()


_hands: dict[str, HandSession] = {}
_locks: dict[str, asyncio.Lock] = {}


def _generate_code(length: int = 6) -> str:
    """Generate a short uppercase hand code."""
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


def _get_lock(code: str) -> asyncio.Lock:
    # Locks exist only for live hands; the session is re-checked under the lock
    if code not in _hands:
        raise ValueError("Hand not found")
    return _locks.setdefault(code, asyncio.Lock())


def _get_session(code: str) -> HandSession:
    session = _hands.get(code)
    if session is None:
        raise ValueError("Hand not found")
    return session


async def create_hand(req: CreateHandRequest) -> tuple[str, dict[str, Any]]:
    """Open a new hand and return (code, hand_view)."""
    code = _generate_code()
    # Ensure uniqueness (simple retry)
    while code in _hands:
        code = _generate_code()

    session = HandSession(code=code, flow=HandFlow(req.table))
    _hands[code] = session
    logger.info(
        "Hand created: code=%s seats=%d blinds=%d/%d",
        code,
        len(req.table.seats),
        req.table.small_blind,
        req.table.big_blind,
    )
    return code, session.flow.view()


async def get_hand_view(code: str) -> Optional[dict[str, Any]]:
    session = _hands.get(code)
    if session is None:
        return None
    return session.flow.view()


async def random_cards(code: str, n: int = 1) -> list[Card]:
    """Unseen cards for the card pickers' random fill."""
    return _get_session(code).flow.random_cards(n)


async def commit_action(
    code: str, kind: ActionKind, amount: Optional[int] = None
) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.commit_action(kind, amount)
        session.touch()
        return session.flow.view()


async def confirm_hole_cards(code: str, card1: Card, card2: Card) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.confirm_hole_cards(card1, card2)
        session.touch()
        return session.flow.view()


async def update_board(
    code: str, street: Street, slot: int, card: Optional[Card]
) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.update_board(street, slot, card)
        session.touch()
        return session.flow.view()


async def confirm_board(code: str) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.confirm_board()
        session.touch()
        return session.flow.view()


async def commit_showdown(code: str, record: ShowdownRecord) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.commit_showdown(record)
        session.touch()
        return session.flow.view()


async def confirm_winner(code: str, winner_id: str) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.confirm_winner(winner_id)
        session.touch()
        return session.flow.view()


async def go_back(code: str) -> dict[str, Any]:
    async with _get_lock(code):
        session = _get_session(code)
        session.flow.go_back()
        session.touch()
        return session.flow.view()


async def discard_hand(code: str) -> None:
    """Forget a hand (saved elsewhere or abandoned)."""
    async with _get_lock(code):
        _get_session(code)
        del _hands[code]
    _locks.pop(code, None)
    logger.info("Hand discarded: code=%s", code)


def list_sessions() -> list[HandSession]:
    return list(_hands.values())


def list_hand_codes() -> list[str]:
    return list(_hands)
