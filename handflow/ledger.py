"""Contribution ledger: chips committed this street, over the hand, and the pot.

Only a single running pot is kept. Unequal all-ins are not split into
side pots.
"""

from __future__ import annotations

from typing import Sequence

from handflow.models import Seat, TableConfig


def blind_posts(table: TableConfig) -> dict[str, int]:
    """Forced street contributions at the start of the hand."""
    ids = table.player_ids
    posts = {pid: 0 for pid in ids}
    if len(ids) == 2:
        # Heads-up: button posts the small blind
        posts[ids[0]] = table.small_blind
        posts[ids[1]] = table.big_blind
    else:
        posts[ids[1]] = table.small_blind
        posts[ids[2]] = table.big_blind
    return posts


def opening_ledger(table: TableConfig) -> tuple[dict[str, int], dict[str, int], int]:
    """Return ``(contributions, invested, pot)`` with blinds and antes posted.

    Antes are dead money: they go into the pot and the hand total but never
    count toward a street contribution.
    """
    contributions = blind_posts(table)
    invested = {pid: amount + table.ante for pid, amount in contributions.items()}
    pot = sum(invested.values())
    return contributions, invested, pot


def empty_contributions(player_ids: Sequence[str]) -> dict[str, int]:
    return {pid: 0 for pid in player_ids}


def to_call(contributions: dict[str, int], current_bet: int, player_id: str) -> int:
    return max(0, current_bet - contributions.get(player_id, 0))


def commit_to(
    contributions: dict[str, int],
    invested: dict[str, int],
    pot: int,
    player_id: str,
    target: int,
) -> tuple[dict[str, int], dict[str, int], int]:
    """Raise ``player_id``'s street contribution to ``target``.

    Returns fresh ``(contributions, invested, pot)``; the inputs are left
    untouched. The pot never shrinks here.
    """
    added = max(0, target - contributions.get(player_id, 0))
    new_contributions = {**contributions, player_id: target}
    new_invested = {**invested, player_id: invested.get(player_id, 0) + added}
    return new_contributions, new_invested, pot + added


def all_in_target(
    seat: Seat,
    contributions: dict[str, int],
    invested: dict[str, int],
    current_bet: int,
) -> int:
    """Street contribution level reached by shoving the rest of the stack.

    Falls back to the current bet when the stack is unknown or used up.
    """
    street_contribution = contributions.get(seat.id, 0)
    behind = seat.stack - invested.get(seat.id, 0)
    if seat.stack <= 0 or behind <= 0:
        return current_bet
    return street_contribution + behind
