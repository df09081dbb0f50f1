"""Tests for preflop/postflop order builders."""

import pytest

from handflow.orders import (
    build_postflop_order,
    build_preflop_order,
    filter_order,
    predecessor,
    rederive_after_straddle,
)

NAMES = ["btn", "sb", "bb", "utg", "hj", "co", "mp", "lj", "utg1"]


def _ids(n: int) -> list[str]:
    return NAMES[:n]


class TestPreflopOrder:
    def test_heads_up_button_first(self):
        assert build_preflop_order(["btn", "bb"]) == ["btn", "bb"]

    def test_three_handed(self):
        assert build_preflop_order(["btn", "sb", "bb"]) == ["btn", "sb", "bb"]

    def test_four_handed(self):
        assert build_preflop_order(_ids(4)) == ["utg", "btn", "sb", "bb"]

    def test_six_handed(self):
        assert build_preflop_order(_ids(6)) == ["utg", "hj", "co", "btn", "sb", "bb"]

    @pytest.mark.parametrize("n", range(3, 10))
    def test_big_blind_always_last(self, n):
        order = build_preflop_order(_ids(n))
        assert order[-1] == "bb"
        assert sorted(order) == sorted(_ids(n))

    def test_heads_up_big_blind_last(self):
        assert build_preflop_order(_ids(2))[-1] == "sb"  # seat 1 posts the big blind


class TestStraddleRederivation:
    def test_utg_straddle_six_handed(self):
        order = build_preflop_order(_ids(6))
        assert rederive_after_straddle(order, "utg") == [
            "hj", "co", "btn", "sb", "bb", "utg",
        ]

    def test_utg_straddle_four_handed(self):
        order = build_preflop_order(_ids(4))
        assert rederive_after_straddle(order, "utg") == ["btn", "sb", "bb", "utg"]

    def test_double_straddle(self):
        order = rederive_after_straddle(build_preflop_order(_ids(6)), "utg")
        assert rederive_after_straddle(order, "hj") == [
            "co", "btn", "sb", "bb", "utg", "hj",
        ]

    def test_unknown_straddler_leaves_order(self):
        order = build_preflop_order(_ids(4))
        assert rederive_after_straddle(order, "ghost") == order


class TestPostflopOrder:
    def test_three_handed(self):
        assert build_postflop_order(["btn", "sb", "bb"], set()) == ["sb", "bb", "btn"]

    def test_four_handed(self):
        assert build_postflop_order(_ids(4), set()) == ["sb", "bb", "utg", "btn"]

    def test_heads_up_button_last(self):
        assert build_postflop_order(["btn", "bb"]) == ["bb", "btn"]

    @pytest.mark.parametrize("n", range(2, 10))
    def test_button_always_last(self, n):
        assert build_postflop_order(_ids(n), set())[-1] == "btn"

    def test_folded_seat_removed(self):
        assert build_postflop_order(_ids(4), {"sb"}) == ["bb", "utg", "btn"]

    def test_button_fold_changes_last(self):
        assert build_postflop_order(_ids(4), {"btn"}) == ["sb", "bb", "utg"]

    def test_only_one_left(self):
        assert build_postflop_order(_ids(4), {"sb", "bb", "utg"}) == ["btn"]

    def test_all_in_seats_removed(self):
        assert build_postflop_order(_ids(4), set(), {"bb"}) == ["sb", "utg", "btn"]

    @pytest.mark.parametrize(
        "folded",
        [set(), {"co"}, {"sb", "hj"}, {"btn", "bb", "ghost"}, set(_ids(6))],
    )
    def test_excludes_exactly_folded_and_keeps_rotation(self, folded):
        ids = _ids(6)
        full = build_postflop_order(ids, set())
        order = build_postflop_order(ids, folded)
        assert set(order) == set(ids) - (folded & set(ids))
        assert order == [pid for pid in full if pid in order]


class TestHelpers:
    def test_filter_order(self):
        assert filter_order(["a", "b", "c", "d"], {"b"}, {"d"}) == ["a", "c"]

    def test_predecessor_wraps(self):
        assert predecessor(["a", "b", "c"], "a") == "c"
        assert predecessor(["a", "b", "c"], "c") == "b"

    def test_predecessor_missing(self):
        assert predecessor(["a", "b"], "z") is None
