"""Tests for Card, Deck, and known-card collection."""

import pytest
from pydantic import ValidationError

from handflow.cards import Card, Deck, Rank, Suit, RANK_SYMBOLS, SUIT_SYMBOLS, known_cards
from handflow.history import HandFlow
from handflow.models import Seat, ShowdownRecord, TableConfig


def _c(s: str) -> Card:
    return Card.from_str(s)


# ── Card basics ──────────────────────────────────────────────────────

class TestCard:
    def test_creation(self):
        c = Card(rank=Rank.ACE, suit=Suit.SPADES)
        assert c.rank == Rank.ACE
        assert c.suit == Suit.SPADES

    def test_str(self):
        assert str(Card(rank=Rank.ACE, suit=Suit.HEARTS)) == "Ah"
        assert str(Card(rank=Rank.TEN, suit=Suit.CLUBS)) == "Tc"
        assert str(Card(rank=Rank.TWO, suit=Suit.DIAMONDS)) == "2d"

    def test_equality(self):
        assert _c("Ks") == Card(rank=Rank.KING, suit=Suit.SPADES)
        assert _c("Ks") != _c("Kh")

    def test_hash_consistency(self):
        s = {_c("Qd"), _c("Qd")}
        assert len(s) == 1

    def test_frozen(self):
        c = _c("Qd")
        with pytest.raises(ValidationError):
            c.rank = Rank.TWO

    def test_to_dict(self):
        assert _c("Jh").to_dict() == {"rank": 11, "suit": "h"}

    def test_from_dict(self):
        c = Card.from_dict({"rank": 14, "suit": "s"})
        assert c == _c("As")

    def test_json_shape_matches_to_dict(self):
        c = _c("7c")
        assert c.model_dump(mode="json") == c.to_dict()

    def test_from_str_case_insensitive(self):
        assert Card.from_str("ah") == Card.from_str("Ah")

    @pytest.mark.parametrize("bad", ["", "A", "Ahh", "1h", "Ax"])
    def test_from_str_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            Card.from_str(bad)


# ── Rank / Suit enums ───────────────────────────────────────────────

class TestEnums:
    def test_rank_values(self):
        assert Rank.TWO == 2
        assert Rank.ACE == 14
        assert len(Rank) == 13

    def test_symbols_complete(self):
        assert set(RANK_SYMBOLS) == set(Rank)
        assert set(SUIT_SYMBOLS) == set(Suit)


# ── Deck ─────────────────────────────────────────────────────────────

class TestDeck:
    def test_full_deck(self):
        d = Deck()
        assert d.remaining == 52
        assert len(set(d.deal(52))) == 52

    def test_excluded_cards_never_dealt(self):
        used = [_c("Ah"), _c("Kh"), _c("2c")]
        d = Deck(exclude=used)
        assert d.remaining == 49
        dealt = d.deal(49)
        assert not set(dealt) & set(used)

    def test_deal_reduces_remaining(self):
        d = Deck()
        d.deal(5)
        assert d.remaining == 47

    def test_deal_past_end_returns_what_is_left(self):
        d = Deck(exclude=Deck().deal(50))
        assert len(d.deal(5)) == 2
        assert d.remaining == 0
        assert d.deal(1) == []


# ── known_cards ──────────────────────────────────────────────────────

def _heads_up_flow() -> HandFlow:
    return HandFlow(
        TableConfig(
            seats=[
                Seat(id="btn", label="BTN", stack=1000, position=0),
                Seat(id="bb", label="BB", stack=1000, position=1),
            ],
            small_blind=5,
            big_blind=10,
        )
    )


class TestKnownCards:
    def test_empty_at_start(self):
        assert known_cards(_heads_up_flow().state) == set()

    def test_collects_hole_board_and_showdown(self):
        flow = _heads_up_flow()
        flow.confirm_hole_cards(_c("Ah"), _c("Kh"))
        flow.commit_action("call")
        flow.commit_action("check")
        flow.update_board("flop", 0, _c("2c"))
        flow.update_board("flop", 1, _c("3c"))
        seen = known_cards(flow.state)
        assert seen == {_c("Ah"), _c("Kh"), _c("2c"), _c("3c")}

        # Fill the remaining streets and reach showdown
        flow.confirm_board()
        flow.commit_action("check")
        flow.commit_action("check")
        flow.confirm_board()
        flow.commit_action("check")
        flow.commit_action("check")
        flow.confirm_board()
        flow.commit_action("check")
        flow.commit_action("check")
        head = flow.state.showdown_queue[0]
        flow.commit_showdown(
            ShowdownRecord(player_id=head, action="show", cards=(_c("9s"), _c("9d")))
        )
        assert {_c("9s"), _c("9d")} <= known_cards(flow.state)

    def test_deck_skips_known_cards(self):
        flow = _heads_up_flow()
        flow.confirm_hole_cards(_c("Ah"), _c("Kh"))
        d = Deck(exclude=known_cards(flow.state))
        assert d.remaining == 50
