"""Tests for Hand evaluation."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from blackjackpro.cards import Card, Rank, Suit
from blackjackpro.hand import Hand

cards = st.builds(Card, st.sampled_from(list(Rank)), st.sampled_from(list(Suit)))
hands = st.lists(cards, min_size=1, max_size=8).map(lambda cs: Hand(cards=cs))


class TestHand:
    """Tests for the Hand class."""

    def test_empty_hand(self, empty_hand):
        """Test empty hand properties."""
        assert len(empty_hand) == 0
        assert empty_hand.value == 0
        assert not empty_hand.is_soft
        assert not empty_hand.is_blackjack
        assert not empty_hand.is_busted

    def test_add_card(self, empty_hand):
        """Test adding cards to hand."""
        empty_hand.add_card(Card(Rank.TEN, Suit.SPADES))
        assert len(empty_hand) == 1
        assert empty_hand.value == 10

    def test_hard_hand_value(self, hard_16_hand):
        assert hard_16_hand.value == 16
        assert hard_16_hand.is_hard

    def test_soft_hand_value(self, soft_17_hand):
        """Test A+6 is a soft 17."""
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft
        assert soft_17_hand.display_value == "7/17"

    def test_soft_hand_turns_hard(self, soft_17_hand):
        """Test A+6+10 is a hard 17, not a bust."""
        soft_17_hand.add_card(Card(Rank.TEN, Suit.CLUBS))
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_hard
        assert not soft_17_hand.is_busted
        assert soft_17_hand.display_value == "17"

    def test_blackjack(self, blackjack_hand):
        """Test blackjack detection."""
        assert blackjack_hand.is_blackjack
        assert blackjack_hand.value == 21
        assert blackjack_hand.display_value == "21"

    def test_not_blackjack_three_cards(self, hand_of):
        """Test that 21 with 3+ cards is not blackjack."""
        hand = hand_of("7S 7H 7C")
        assert hand.value == 21
        assert not hand.is_blackjack

    def test_bust(self, bust_hand):
        assert bust_hand.is_busted
        assert bust_hand.value == 26

    def test_multiple_aces(self, hand_of):
        """Test A-A is soft 12 and A-A-A-9 is hard 12."""
        hand = hand_of("AS AH")
        assert hand.value == 12
        assert hand.is_soft
        assert hand.ace_count == 2

        hand.add_card(Card(Rank.ACE, Suit.CLUBS))
        hand.add_card(Card(Rank.NINE, Suit.DIAMONDS))
        assert hand.value == 12
        assert hand.is_hard

    def test_pair_detection(self, pair_8s_hand, hand_of):
        assert pair_8s_hand.is_pair
        assert not hand_of("8S 9H").is_pair
        assert not hand_of("8S 8H 2C").is_pair

    def test_face_cards_of_different_rank_are_not_a_pair(self, hand_of):
        assert not hand_of("KS QH").is_pair

    def test_remove_card(self, pair_8s_hand):
        card = pair_8s_hand.remove_card()
        assert card == Card(Rank.EIGHT, Suit.HEARTS)
        assert len(pair_8s_hand) == 1

    def test_copy_is_independent(self, hard_16_hand):
        copy = hard_16_hand.copy()
        copy.add_card(Card(Rank.TWO, Suit.CLUBS))
        assert len(hard_16_hand) == 2
        assert copy.value == 18

    def test_clear_hand(self, blackjack_hand):
        """Test clearing a hand resets cards and flags."""
        blackjack_hand.is_split = True
        blackjack_hand.clear()
        assert len(blackjack_hand) == 0
        assert blackjack_hand.value == 0
        assert not blackjack_hand.is_split

    @pytest.mark.parametrize(
        "cards,key",
        [("8S 8H", "pair_8"), ("AS 6H", "soft_6"), ("10S 6H", "hard_16")],
    )
    def test_strategy_key(self, hand_of, cards, key):
        assert hand_of(cards).strategy_key == key


class TestHandProperties:
    """Property-based checks of hand valuation."""

    @given(hands)
    def test_value_does_not_bust_when_an_ace_can_be_one(self, hand):
        """With every ace counted as 1 under 22, the value never busts."""
        all_low = sum(1 if c.is_ace else c.value for c in hand.cards)
        if all_low <= 21:
            assert hand.value <= 21
        else:
            assert hand.value == all_low

    @given(hands)
    def test_value_is_best_assignment(self, hand):
        """Value is the highest non-busting ace assignment when one exists."""
        low = sum(1 if c.is_ace else c.value for c in hand.cards)
        options = [low + 10 * k for k in range(hand.ace_count + 1)]
        safe = [v for v in options if v <= 21]
        assert hand.value == (max(safe) if safe else low)

    @given(hands)
    def test_blackjack_iff_two_card_21(self, hand):
        assert hand.is_blackjack == (len(hand) == 2 and hand.value == 21)

    @given(hands)
    def test_soft_means_an_ace_counts_eleven(self, hand):
        low = sum(1 if c.is_ace else c.value for c in hand.cards)
        assert hand.is_soft == (hand.has_ace and hand.value == low + 10)
