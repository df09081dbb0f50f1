"""HandFlow: one hand's live state plus its undo stack."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from handflow import engine
from handflow.cards import Card, Deck, known_cards
from handflow.engine import EngineState
from handflow.models import ActionKind, Seat, ShowdownRecord, Street, TableConfig

logger = logging.getLogger(__name__)


class HandFlow:
    """Drives a single hand, one call at a time.

    Before every committed transition the previous state is pushed onto
    ``history``; ``go_back`` swaps the latest snapshot back in as a whole.
    Calls the engine ignores leave both state and history untouched.
    """

    def __init__(self, table: TableConfig) -> None:
        self.table = table
        self._state: EngineState = engine.new_hand(table)
        self._history: list[EngineState] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def history(self) -> tuple[EngineState, ...]:
        return tuple(self._history)

    @property
    def can_go_back(self) -> bool:
        return bool(self._history)

    @property
    def actor_id(self) -> Optional[str]:
        return engine.current_actor(self._state, self.table)

    @property
    def actor_seat(self) -> Optional[Seat]:
        actor = self.actor_id
        return self.table.seat(actor) if actor else None

    def to_call(self, player_id: Optional[str] = None) -> int:
        """Chips owed by ``player_id`` (default: the current actor)."""
        pid = player_id or self.actor_id
        if pid is None or self.table.seat(pid) is None:
            return 0
        return engine.amount_to_call(self._state, pid)

    @property
    def can_straddle(self) -> bool:
        return engine.can_straddle(self._state, self.table)

    def legal_actions(self) -> list[dict[str, Any]]:
        return engine.legal_actions(self._state, self.table)

    def random_cards(self, n: int = 1) -> list[Card]:
        """Up to ``n`` cards nobody has seen yet in this hand, for random fill."""
        return Deck(exclude=known_cards(self._state)).deal(n)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _commit(self, name: str, transition: Callable[[EngineState], EngineState]) -> EngineState:
        before = self._state
        after = transition(before)
        if after is before:
            logger.debug("Ignored %s in phase %s", name, before.phase.value)
            return before
        self._history.append(before)
        self._state = after
        return after

    def commit_action(self, kind: ActionKind | str, amount: Optional[int] = None) -> EngineState:
        try:
            kind = ActionKind(kind)
        except ValueError:
            logger.debug("Ignored unknown action kind %r", kind)
            return self._state
        return self._commit(
            f"{kind.value} by {self.actor_id}",
            lambda s: engine.apply_action(s, self.table, kind, amount),
        )

    def confirm_hole_cards(self, card1: Card, card2: Card) -> EngineState:
        return self._commit(
            "hole cards", lambda s: engine.confirm_hole_cards(s, card1, card2)
        )

    def update_board(self, street: Street | str, slot: int, card: Optional[Card]) -> EngineState:
        # Slot edits are part of one board entry and are not undo steps
        try:
            street = Street(street)
        except ValueError:
            logger.debug("Ignored board edit for unknown street %r", street)
            return self._state
        after = engine.update_board(self._state, street, slot, card)
        if after is self._state:
            logger.debug("Ignored board edit %s[%d] in phase %s", street.value, slot, after.phase.value)
        self._state = after
        return after

    def confirm_board(self) -> EngineState:
        return self._commit("board", lambda s: engine.confirm_board(s, self.table))

    def commit_showdown(self, record: ShowdownRecord) -> EngineState:
        return self._commit(
            f"showdown by {record.player_id}",
            lambda s: engine.commit_showdown(s, record),
        )

    def confirm_winner(self, winner_id: str) -> EngineState:
        return self._commit(
            f"winner {winner_id}",
            lambda s: engine.confirm_winner(s, self.table, winner_id),
        )

    def go_back(self) -> EngineState:
        if not self._history:
            return self._state
        self._state = self._history.pop()
        return self._state

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def view(self) -> dict[str, Any]:
        """Read-only, JSON-ready picture of the hand for rendering layers."""
        data = self._state.model_dump(mode="json")
        data["closing_player_id"] = self._state.closing_player_id
        data["actor_id"] = self.actor_id
        data["to_call"] = self.to_call()
        data["can_straddle"] = self.can_straddle
        data["can_go_back"] = self.can_go_back
        data["legal_actions"] = self.legal_actions()
        data["table"] = self.table.model_dump(mode="json")
        return data
