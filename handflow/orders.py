"""Acting order for each street.

Seat ids are always passed in position order: ``[BTN, SB, BB, UTG, ...]``.
"""

from __future__ import annotations

from typing import AbstractSet, Sequence


def build_preflop_order(player_ids: Sequence[str]) -> list[str]:
    """UTG through cutoff, then button, small blind and big blind last.

    Heads-up the button posts the small blind and acts first.
    """
    if len(player_ids) == 2:
        return [player_ids[0], player_ids[1]]
    order = list(player_ids[3:])
    order.extend(player_ids[:3])
    return order


def rederive_after_straddle(order: Sequence[str], straddler_id: str) -> list[str]:
    """Restart the order just after the straddler, who now acts last."""
    if straddler_id not in order:
        return list(order)
    idx = order.index(straddler_id)
    return [*order[idx + 1:], *order[:idx], straddler_id]


def build_postflop_order(
    player_ids: Sequence[str],
    folded: AbstractSet[str] = frozenset(),
    all_in: AbstractSet[str] = frozenset(),
) -> list[str]:
    """Small blind first, ascending seat index, button last.

    Folded and all-in seats are left out entirely.
    """
    rotation = [*player_ids[1:], *player_ids[:1]]
    return [pid for pid in rotation if pid not in folded and pid not in all_in]


def filter_order(
    order: Sequence[str], folded: AbstractSet[str], all_in: AbstractSet[str]
) -> list[str]:
    return [pid for pid in order if pid not in folded and pid not in all_in]


def predecessor(order: Sequence[str], player_id: str) -> str | None:
    """The seat acting immediately before ``player_id`` in a wrapping rotation."""
    if player_id not in order:
        return None
    idx = order.index(player_id)
    return order[(idx - 1) % len(order)]
