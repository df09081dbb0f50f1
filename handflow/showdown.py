"""Showdown reveal order."""

from __future__ import annotations

from typing import AbstractSet, Mapping, Optional, Sequence

from handflow.models import AGGRESSIVE_KINDS, STREETS, ActionRecord, Street
from handflow.orders import build_postflop_order


def last_aggressor(
    streets: Mapping[Street, Sequence[ActionRecord]], folded: AbstractSet[str]
) -> Optional[str]:
    """The live seat that bet, raised or went all-in most recently in the hand."""
    aggressor = None
    for street in STREETS:
        for record in streets.get(street, ()):
            if record.kind in AGGRESSIVE_KINDS and record.player_id not in folded:
                aggressor = record.player_id
    return aggressor


def build_showdown_queue(
    streets: Mapping[Street, Sequence[ActionRecord]],
    player_ids: Sequence[str],
    folded: AbstractSet[str],
) -> list[str]:
    """Postflop rotation of live seats (all-ins included), led by the last aggressor.

    Without an aggressor the plain small-blind-first rotation is returned.
    """
    live = build_postflop_order(player_ids, folded)
    if len(live) <= 1:
        return live
    aggressor = last_aggressor(streets, folded)
    if aggressor is None or aggressor not in live:
        return live
    idx = live.index(aggressor)
    return [*live[idx:], *live[:idx]]
