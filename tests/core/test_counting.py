"""Tests for the Hi-Lo system and the live card counter."""

import pytest

from blackjackpro.cards import CARDS_PER_DECK, Card, Rank, Shoe, Suit, cards_from_string
from blackjackpro.counting import CardCounter, HiLoSystem
from blackjackpro.counting.counter import compute_true_count, grade_estimate, spread_multiple
from blackjackpro.counting.counter import AGGRESSIVE_SPREAD, CONSERVATIVE_SPREAD
from blackjackpro.strategy.basic import Action


def feed(counter: CardCounter, cards: str) -> None:
    for card in cards_from_string(cards):
        counter.update_count(card)


class TestHiLo:
    """Tests for Hi-Lo counting system."""

    def test_full_deck_sums_to_zero(self, hilo):
        """Verify Hi-Lo is balanced (full deck = 0)."""
        assert hilo.full_deck_sum == 0
        assert hilo.is_balanced

    def test_tags(self, hilo):
        assert hilo.tag(Card(Rank.FIVE, Suit.SPADES)) == 1
        assert hilo.tag(Card(Rank.EIGHT, Suit.SPADES)) == 0
        assert hilo.tag(Card(Rank.ACE, Suit.SPADES)) == -1
        assert hilo.name == "Hi-Lo"


class TestCardCounter:
    """Tests for running count, true count and decks remaining."""

    def test_disabled_counter_ignores_cards(self):
        counter = CardCounter()
        assert counter.update_count(Card(Rank.TWO, Suit.SPADES)) is None
        assert counter.running_count == 0

    def test_hidden_cards_are_not_counted(self, counter):
        assert counter.update_count(Card(Rank.TWO, Suit.SPADES), is_visible=False) is None
        assert counter.cards_dealt == 0

    def test_running_count(self, counter):
        feed(counter, "2S 3H 4C 5D 10S KH 8C")
        assert counter.running_count == 2
        assert counter.cards_dealt == 7

    def test_full_shoe_counts_to_zero(self, counter):
        for card in Shoe(num_decks=6):
            counter.update_count(card)
        assert counter.running_count == 0

    def test_true_count(self):
        counter = CardCounter(total_decks=1)
        counter.set_enabled(True)
        feed(counter, " ".join(["2S"] * 26))
        assert counter.decks_remaining == pytest.approx(0.5)
        assert counter.true_count == pytest.approx(52.0)

    def test_decks_remaining_floor(self):
        """Test decks remaining never drops below half a deck."""
        counter = CardCounter(total_decks=1)
        counter.set_enabled(True)
        feed(counter, " ".join(["7S"] * 50))
        assert counter.decks_remaining == 0.5

    def test_compute_true_count(self):
        assert compute_true_count(6, 2.0) == 3.0
        assert compute_true_count(6, 0.1) == 12.0

    def test_true_count_trajectory_is_reproducible(self):
        """Replaying the same cards from a fresh count gives the same trajectory."""
        sequence = "2S 9H KC 4D 5S AH 6C 3D QS 7H"

        def trajectory():
            counter = CardCounter(total_decks=2)
            counter.set_enabled(True)
            return [counter.update_count(card).true_count for card in cards_from_string(sequence)]

        first = trajectory()
        assert first == trajectory()
        assert first[0] == pytest.approx(1 / (103 / CARDS_PER_DECK))

    def test_reset_on_reshuffle(self, counter):
        """Test a reset puts the count back to a fresh shoe."""
        feed(counter, "2S 3S 4S")
        counter.reset()
        assert counter.running_count == 0
        assert counter.decks_remaining == 6

    def test_disable_resets(self, counter):
        feed(counter, "2S 3S")
        counter.set_enabled(False)
        assert counter.running_count == 0
        assert not counter.enabled

    def test_set_total_decks(self, counter):
        feed(counter, "2S")
        counter.set_total_decks(2)
        assert counter.total_decks == 2
        assert counter.running_count == 0
        with pytest.raises(ValueError):
            counter.set_total_decks(0)

    def test_side_counts_and_extremes(self, counter):
        feed(counter, "AS 5H KC 10D 2S")
        state = counter.state()
        assert state.side_counts == {"aces": 1, "fives": 1, "tens": 2}
        assert counter.min_count == -2
        assert counter.max_count == 0
        assert state.running_count == -1

    def test_history(self, counter):
        feed(counter, "2S KH")
        assert [event.hi_lo_value for event in counter.history] == [1, -1]
        assert counter.history[-1].running_count == 0


class TestAdvice:
    """Tests for betting and index play advice."""

    def test_spread_tables(self):
        assert spread_multiple(-3, CONSERVATIVE_SPREAD) == 0
        assert spread_multiple(0, CONSERVATIVE_SPREAD) == 1
        assert spread_multiple(3.5, CONSERVATIVE_SPREAD) == 3
        assert spread_multiple(3.5, AGGRESSIVE_SPREAD) == 5

    def test_neutral_count_bets_minimum(self, counter):
        rec = counter.betting_recommendation(base_bet=25, bankroll=1000)
        assert rec.recommended_bet == 25
        assert rec.kelly_bet == 0.0
        assert rec.bankroll_units == 40
        assert rec.risk_of_ruin == 1.0

    def test_high_count_raises_bet(self):
        counter = CardCounter(total_decks=1)
        counter.set_enabled(True)
        feed(counter, "2S 3S 4S 5S 6S 2H 3H 4H 5H 6H")
        assert counter.true_count > 5
        rec = counter.betting_recommendation(base_bet=10, bankroll=1000, risk_level="aggressive")
        assert rec.recommended_bet == 100
        assert rec.advantage > 0
        assert rec.kelly_bet > 0

    def test_recommendation_capped_by_bankroll(self):
        counter = CardCounter(total_decks=1)
        counter.set_enabled(True)
        feed(counter, "2S 3S 4S 5S 6S 2H 3H 4H 5H 6H")
        rec = counter.betting_recommendation(base_bet=10, bankroll=500, risk_level="aggressive")
        assert rec.recommended_bet == 50

    def test_index_play_sixteen_vs_ten(self, counter, hand_of):
        """Test 16 vs a face card stands at a zero count."""
        rec = counter.index_play(hand_of("10S 6H"), Card(Rank.KING, Suit.CLUBS))
        assert rec.has_deviation
        assert rec.action == str(Action.STAND)

    def test_index_play_threshold(self, counter, hand_of):
        rec = counter.index_play(hand_of("10S 5H"), Card(Rank.TEN, Suit.CLUBS))
        assert not rec.has_deviation

    def test_pair_of_eights_has_no_deviation_at_plus_three(self, counter, pair_8s_hand, basic_strategy):
        """8-8 vs 6 at TC +3: no index play, basic strategy splits."""
        feed(counter, " ".join(["2S"] * 18))
        assert counter.true_count >= 3

        dealer_card = Card(Rank.SIX, Suit.DIAMONDS)
        rec = counter.index_play(pair_8s_hand, dealer_card)
        assert not rec.has_deviation
        assert rec.action is None
        assert basic_strategy.lookup_hand(pair_8s_hand, dealer_card).action == Action.SPLIT

    def test_insurance_index(self, counter, hand_of):
        feed(counter, " ".join(["2S"] * 18))
        rec = counter.index_play(hand_of("10S 9H"), Card(Rank.ACE, Suit.CLUBS))
        assert rec.has_deviation
        assert rec.action == "Take Insurance"

    def test_expected_value(self, counter):
        ev = counter.expected_value(100)
        assert ev.advantage == -0.5
        assert ev.expected_value == -0.5
        assert ev.hourly_ev == -30.0

    def test_confidence_low_early(self, counter):
        assert counter.confidence_level() == "low"


class TestPractice:
    """Tests for count practice and session analytics."""

    @pytest.mark.parametrize(
        "deviation,score", [(0, 100), (1, 90), (2, 75), (3, 60), (4, 40), (9, 0)]
    )
    def test_grade_estimate(self, deviation, score):
        assert grade_estimate(deviation) == score

    def test_estimates_need_practice_mode(self, counter):
        assert counter.record_count_estimate(0) is None

    def test_practice_session(self, counter):
        counter.start_practice()
        feed(counter, "2S 3S")
        counter.record_count_estimate(2)
        counter.record_count_estimate(3)
        summary = counter.end_practice()
        assert summary.total_estimates == 2
        assert summary.accuracy == 50.0
        assert summary.graded_accuracy == 95.0
        assert summary.average_deviation == 0.5
        assert not counter.practice_mode

    def test_export_import(self, counter):
        counter.start_practice()
        feed(counter, "2S")
        counter.record_count_estimate(1)
        counter.record_hand()
        counter.record_bet(25)
        data = counter.export_data()

        restored = CardCounter()
        restored.import_data(data)
        assert restored.hands_played == 1
        assert restored.count_accuracy == 100.0
        assert restored.max_count == 1

    def test_heat_suggestions_for_wide_spread(self, counter):
        for bet in [5, 5, 5, 5, 5, 100]:
            counter.record_bet(bet)
        kinds = [s.type for s in counter.heat_suggestions()]
        assert "betting" in kinds

    def test_betting_correlation(self):
        """Big bets placed at positive true counts raise the correlation."""
        counter = CardCounter(total_decks=1)
        counter.set_enabled(True)
        feed(counter, "2S 3S 4S 5S 6S")
        assert counter.betting_correlation() == 0.0

        for _ in range(5):
            counter.record_bet(50)
        assert counter.betting_correlation() == pytest.approx(0.5)

    def test_small_bets_do_not_correlate(self, counter):
        feed(counter, "2S 3S 4S 5S 6S")
        for _ in range(5):
            counter.record_bet(10)
        assert counter.betting_correlation() == 0.0

    def test_reset_session(self, counter):
        counter.record_hand()
        counter.reset_session()
        assert counter.hands_played == 0
