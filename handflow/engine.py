"""Turn-sequencing engine for a single hand of Hold'em.

The hand is an immutable ``EngineState`` value. Every operation is a pure
transition ``f(state, ...) -> state'``; a request that is out of turn, out
of phase or names an unknown seat returns the very same state object, so
callers can detect a no-op with an identity check.
"""

from __future__ import annotations

from typing import AbstractSet, Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from handflow.cards import Card
from handflow.ledger import (
    all_in_target,
    commit_to,
    empty_contributions,
    opening_ledger,
    to_call,
)
from handflow.models import (
    AGGRESSIVE_KINDS,
    BOARD_SLOTS,
    STREETS,
    ActionKind,
    ActionRecord,
    AfterAggressorClose,
    ClosingRule,
    FixedClose,
    LapDetect,
    Phase,
    Seat,
    ShowdownRecord,
    Street,
    TableConfig,
    closing_seat,
)
from handflow.orders import (
    build_postflop_order,
    build_preflop_order,
    filter_order,
    predecessor,
    rederive_after_straddle,
)
from handflow.showdown import build_showdown_queue


class EngineState(BaseModel):
    """Everything known about the hand after the last committed call."""

    model_config = ConfigDict(frozen=True)

    street: Street = Street.PREFLOP
    streets: dict[Street, list[ActionRecord]]
    boards: dict[Street, list[Optional[Card]]]
    actor_index: int = 0
    folded: frozenset[str] = frozenset()
    all_in: frozenset[str] = frozenset()
    current_bet: int = 0
    contributions: dict[str, int]  # this street only
    invested: dict[str, int]  # whole hand, antes included
    pot: int = 0
    closing: ClosingRule = LapDetect()
    phase: Phase = Phase.HOLE_CARDS
    hole_cards: Optional[tuple[Card, Card]] = None
    showdown_queue: list[str] = []
    showdown_records: list[ShowdownRecord] = []
    winner_id: Optional[str] = None
    preflop_order: list[str] = []
    straddle: int = 0  # latest straddle level, 0 = none

    @property
    def closing_player_id(self) -> Optional[str]:
        return closing_seat(self.closing)


def new_hand(table: TableConfig) -> EngineState:
    """Open a hand with blinds (and antes) already posted."""
    contributions, invested, pot = opening_ledger(table)
    preflop_order = build_preflop_order(table.player_ids)
    return EngineState(
        streets={street: [] for street in STREETS},
        boards={street: [None] * n for street, n in BOARD_SLOTS.items()},
        current_bet=table.big_blind,
        contributions=contributions,
        invested=invested,
        pot=pot,
        # Big blind closes preflop until someone raises
        closing=FixedClose(seat_id=preflop_order[-1]),
        preflop_order=preflop_order,
    )


# ------------------------------------------------------------------
# Accessors
# ------------------------------------------------------------------


def _rotation_for(
    street: Street,
    preflop_order: Sequence[str],
    player_ids: Sequence[str],
    folded: AbstractSet[str],
    all_in: AbstractSet[str],
) -> list[str]:
    if street == Street.PREFLOP:
        return filter_order(preflop_order, folded, all_in)
    return build_postflop_order(player_ids, folded, all_in)


def rotation(state: EngineState, table: TableConfig) -> list[str]:
    """Seats still to act this street, in acting order."""
    return _rotation_for(
        state.street, state.preflop_order, table.player_ids, state.folded, state.all_in
    )


def current_actor(state: EngineState, table: TableConfig) -> Optional[str]:
    if state.phase != Phase.ACTION:
        return None
    order = rotation(state, table)
    if 0 <= state.actor_index < len(order):
        return order[state.actor_index]
    return None


def amount_to_call(state: EngineState, player_id: str) -> int:
    return to_call(state.contributions, state.current_bet, player_id)


def live_players(state: EngineState, table: TableConfig) -> list[str]:
    """Seats that have not folded, all-ins included."""
    return [pid for pid in table.player_ids if pid not in state.folded]


def can_straddle(state: EngineState, table: TableConfig) -> bool:
    """Straddles are open to UTG, then to each new head of the re-derived order."""
    if state.street != Street.PREFLOP or state.phase != Phase.ACTION:
        return False
    if len(table.seats) < 4:
        return False
    preflop = state.streets[Street.PREFLOP]
    if any(r.kind != ActionKind.STRADDLE for r in preflop):
        return False
    actor = current_actor(state, table)
    if actor is None:
        return False
    if not preflop:
        return actor == table.player_ids[3]
    return state.actor_index == 0


def legal_actions(state: EngineState, table: TableConfig) -> list[dict[str, Any]]:
    """The action set a caller should offer to the current actor."""
    actor = current_actor(state, table)
    if actor is None:
        return []
    seat = table.seat(actor)
    if seat is None:
        return []

    owed = amount_to_call(state, actor)
    actions: list[dict[str, Any]] = [{"action": ActionKind.FOLD.value}]
    if owed == 0:
        actions.append({"action": ActionKind.CHECK.value})
    else:
        actions.append({"action": ActionKind.CALL.value, "amount": owed})

    if state.current_bet == 0:
        actions.append({"action": ActionKind.BET.value})
    else:
        actions.append({"action": ActionKind.RAISE.value})

    actions.append(
        {
            "action": ActionKind.ALL_IN.value,
            "amount": all_in_target(
                seat, state.contributions, state.invested, state.current_bet
            ),
        }
    )
    if can_straddle(state, table):
        actions.append(
            {"action": ActionKind.STRADDLE.value, "amount": state.current_bet * 2}
        )
    return actions


# ------------------------------------------------------------------
# Action processing
# ------------------------------------------------------------------


def apply_action(
    state: EngineState,
    table: TableConfig,
    kind: ActionKind,
    amount: Optional[int] = None,
) -> EngineState:
    """Apply one action for the current actor and settle the street if it closes."""
    if state.phase != Phase.ACTION:
        return state
    order = rotation(state, table)
    if not 0 <= state.actor_index < len(order):
        return state
    actor = order[state.actor_index]
    seat = table.seat(actor)
    if seat is None:
        return state

    if kind == ActionKind.STRADDLE:
        if not can_straddle(state, table):
            return state
        return _apply_straddle(state, table, seat)
    if kind == ActionKind.CHECK and amount_to_call(state, actor) > 0:
        return state

    folded = state.folded
    all_in = state.all_in
    contributions = state.contributions
    invested = state.invested
    pot = state.pot
    current_bet = state.current_bet
    recorded_amount: Optional[int] = None

    if kind == ActionKind.FOLD:
        folded = folded | {actor}
    elif kind == ActionKind.CALL:
        recorded_amount = amount_to_call(state, actor)
        contributions, invested, pot = commit_to(
            contributions, invested, pot, actor, current_bet
        )
    elif kind in (ActionKind.BET, ActionKind.RAISE):
        target = amount if amount is not None else current_bet
        recorded_amount = target
        contributions, invested, pot = commit_to(
            contributions, invested, pot, actor, target
        )
        current_bet = max(current_bet, target)
    elif kind == ActionKind.ALL_IN:
        if amount is not None and amount > 0:
            target = amount
        else:
            target = all_in_target(seat, contributions, invested, current_bet)
        recorded_amount = target
        contributions, invested, pot = commit_to(
            contributions, invested, pot, actor, target
        )
        current_bet = max(current_bet, target)
        all_in = all_in | {actor}

    record = ActionRecord(
        player_id=actor,
        label=seat.label,
        kind=kind,
        amount=recorded_amount,
        street=state.street,
    )
    streets = {**state.streets, state.street: [*state.streets[state.street], record]}

    new_order = _rotation_for(
        state.street, state.preflop_order, table.player_ids, folded, all_in
    )

    # Fold and all-in shrink the rotation, so the same index already
    # points at the next seat.
    shrinks = kind in (ActionKind.FOLD, ActionKind.ALL_IN)
    raw_index = state.actor_index if shrinks else state.actor_index + 1
    next_index = raw_index % len(new_order) if new_order else 0

    closing = _next_closing(state.closing, kind, actor, order, new_order)

    live = [pid for pid in table.player_ids if pid not in folded]
    can_act = [pid for pid in live if pid not in all_in]
    squared = all(
        pid in all_in or contributions.get(pid, 0) >= current_bet for pid in live
    )
    lapped = raw_index >= len(new_order)
    closing_id = closing_seat(closing)

    if len(live) <= 1:
        street_over = True
    elif not can_act:
        street_over = True
    elif current_bet == 0:
        street_over = lapped
    elif kind in (ActionKind.BET, ActionKind.RAISE):
        bettor_last = actor not in new_order or new_order[-1] == actor
        street_over = bettor_last and squared
    elif kind == ActionKind.ALL_IN:
        street_over = not new_order
    elif closing_id is None:
        street_over = lapped and squared
    elif kind == ActionKind.FOLD and closing_seat(state.closing) != closing_id:
        # The closing seat itself folded
        street_over = lapped and squared
    else:
        street_over = actor == closing_id and squared

    updated = state.model_copy(
        update={
            "streets": streets,
            "folded": folded,
            "all_in": all_in,
            "contributions": contributions,
            "invested": invested,
            "pot": pot,
            "current_bet": current_bet,
            "actor_index": next_index,
            "closing": closing,
            "phase": Phase.ACTION,
        }
    )
    if street_over:
        return resolve_street_end(updated, table)
    return updated


def _next_closing(
    closing: ClosingRule,
    kind: ActionKind,
    actor: str,
    order: list[str],
    new_order: list[str],
) -> ClosingRule:
    if kind in AGGRESSIVE_KINDS:
        if actor in new_order:
            seat_id = predecessor(new_order, actor)
        else:
            # All-in left the rotation: fall back on whoever acted before
            # the shover, if that seat can still act.
            candidate = predecessor(order, actor) if len(order) > 1 else None
            if candidate in new_order:
                seat_id = candidate
            else:
                seat_id = new_order[-1] if new_order else None
        if seat_id is None:
            return LapDetect()
        return AfterAggressorClose(seat_id=seat_id)

    if kind == ActionKind.FOLD:
        seat_id = closing_seat(closing)
        if seat_id is not None and seat_id not in new_order:
            if not new_order:
                return LapDetect()
            return closing.model_copy(update={"seat_id": new_order[-1]})
    return closing


def _apply_straddle(state: EngineState, table: TableConfig, seat: Seat) -> EngineState:
    """Forced raise to twice the current bet; the straddler now acts last."""
    level = state.current_bet * 2
    record = ActionRecord(
        player_id=seat.id,
        label=seat.label,
        kind=ActionKind.STRADDLE,
        amount=level,
        street=Street.PREFLOP,
    )
    contributions, invested, pot = commit_to(
        state.contributions, state.invested, state.pot, seat.id, level
    )
    preflop_order = rederive_after_straddle(state.preflop_order, seat.id)
    active = filter_order(preflop_order, state.folded, state.all_in)
    closing: ClosingRule = FixedClose(seat_id=active[-1]) if active else LapDetect()
    return state.model_copy(
        update={
            "streets": {
                **state.streets,
                Street.PREFLOP: [*state.streets[Street.PREFLOP], record],
            },
            "contributions": contributions,
            "invested": invested,
            "pot": pot,
            "current_bet": level,
            "straddle": level,
            "preflop_order": preflop_order,
            "actor_index": 0,
            "closing": closing,
            "phase": Phase.ACTION,
        }
    )


# ------------------------------------------------------------------
# Street / phase control
# ------------------------------------------------------------------


def resolve_street_end(state: EngineState, table: TableConfig) -> EngineState:
    """Close the current street: winner selection, showdown or the next board."""
    if len(live_players(state, table)) <= 1:
        return state.model_copy(
            update={
                "phase": Phase.WINNER,
                "showdown_queue": [],
                "showdown_records": [],
            }
        )

    if state.street == Street.RIVER:
        queue = build_showdown_queue(state.streets, table.player_ids, state.folded)
        return state.model_copy(
            update={
                "phase": Phase.SHOWDOWN,
                "showdown_queue": queue,
                "showdown_records": [],
            }
        )

    next_street = STREETS[STREETS.index(state.street) + 1]
    # Postflop streets open as check-arounds
    return state.model_copy(
        update={
            "phase": Phase.BOARD_INPUT,
            "street": next_street,
            "actor_index": 0,
            "current_bet": 0,
            "contributions": empty_contributions(table.player_ids),
            "closing": LapDetect(),
        }
    )


def confirm_hole_cards(state: EngineState, card1: Card, card2: Card) -> EngineState:
    if state.phase != Phase.HOLE_CARDS:
        return state
    return state.model_copy(update={"hole_cards": (card1, card2), "phase": Phase.ACTION})


def update_board(
    state: EngineState, street: Street, slot: int, card: Optional[Card]
) -> EngineState:
    """Fill or clear one slot of the board being entered."""
    if state.phase != Phase.BOARD_INPUT or street != state.street:
        return state
    if street not in BOARD_SLOTS or not 0 <= slot < BOARD_SLOTS[street]:
        return state
    slots = list(state.boards[street])
    slots[slot] = card
    return state.model_copy(update={"boards": {**state.boards, street: slots}})


def confirm_board(state: EngineState, table: TableConfig) -> EngineState:
    """Start betting on the new street, or skip it when nobody is left to bet."""
    if state.phase != Phase.BOARD_INPUT:
        return state
    can_act = [
        pid for pid in table.player_ids
        if pid not in state.folded and pid not in state.all_in
    ]
    if len(can_act) <= 1:
        return resolve_street_end(state.model_copy(update={"phase": Phase.ACTION}), table)
    return state.model_copy(update={"phase": Phase.ACTION})


def commit_showdown(state: EngineState, record: ShowdownRecord) -> EngineState:
    """Record the head of the reveal queue showing or mucking."""
    if state.phase != Phase.SHOWDOWN or not state.showdown_queue:
        return state
    if record.player_id != state.showdown_queue[0]:
        return state
    queue = state.showdown_queue[1:]
    return state.model_copy(
        update={
            "showdown_records": [*state.showdown_records, record],
            "showdown_queue": queue,
            "phase": Phase.SHOWDOWN if queue else Phase.WINNER,
        }
    )


def confirm_winner(state: EngineState, table: TableConfig, winner_id: str) -> EngineState:
    if state.phase != Phase.WINNER:
        return state
    if table.seat(winner_id) is None or winner_id in state.folded:
        return state
    return state.model_copy(update={"winner_id": winner_id, "phase": Phase.DONE})
