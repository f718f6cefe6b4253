"""Tests for basic strategy tables, index plays and the hint advisor."""

import pytest

from blackjackpro.cards import Card, Rank, Suit
from blackjackpro.strategy import INDEX_PLAYS, Action, StrategyAdvisor
from blackjackpro.strategy.advisor import accuracy_grade, bust_risk, dealer_strength
from blackjackpro.strategy.deviations import find_deviation

SIX = Card(Rank.SIX, Suit.DIAMONDS)
TEN = Card(Rank.TEN, Suit.CLUBS)
ACE = Card(Rank.ACE, Suit.CLUBS)


class TestBasicStrategy:
    """Tests for BasicStrategy class."""

    def test_hard_17_always_stand(self, basic_strategy):
        """Test that hard 17+ always stands."""
        for total in range(17, 22):
            for dealer_up in range(2, 12):
                assert basic_strategy.get_action(total, dealer_up) == Action.STAND

    def test_hard_11_doubles_except_ace(self, basic_strategy):
        for dealer_up in range(2, 11):
            assert basic_strategy.get_action(11, dealer_up) == Action.DOUBLE
        assert basic_strategy.get_action(11, 11) == Action.HIT

    def test_hard_8_always_hit(self, basic_strategy):
        """Test that hard 8 or less always hits."""
        for total in range(5, 9):
            for dealer_up in range(2, 12):
                assert basic_strategy.get_action(total, dealer_up) == Action.HIT

    def test_hard_12(self, basic_strategy):
        assert basic_strategy.get_action(12, 3) == Action.HIT
        assert basic_strategy.get_action(12, 4) == Action.STAND
        assert basic_strategy.get_action(12, 7) == Action.HIT

    def test_soft_18(self, basic_strategy):
        assert basic_strategy.get_action(18, 2, is_soft=True) == Action.STAND
        assert basic_strategy.get_action(18, 5, is_soft=True) == Action.DOUBLE
        assert basic_strategy.get_action(18, 10, is_soft=True) == Action.HIT

    def test_double_falls_back_to_hit(self, basic_strategy, hand_of):
        assert basic_strategy.get_action(11, 6, can_double=False) == Action.HIT
        lookup = basic_strategy.lookup_hand(
            hand_of("5S 6H"), SIX, can_double=False
        )
        assert lookup.double_unavailable

    def test_pair_aces_and_eights_always_split(self, basic_strategy):
        for dealer_up in range(2, 12):
            assert basic_strategy.get_action(12, dealer_up, is_pair=True, pair_value=11) == Action.SPLIT
            assert basic_strategy.get_action(16, dealer_up, is_pair=True, pair_value=8) == Action.SPLIT

    def test_pair_tens_never_split(self, basic_strategy):
        for dealer_up in range(2, 12):
            assert basic_strategy.get_action(20, dealer_up, is_pair=True, pair_value=10) == Action.STAND

    def test_pair_fives_play_as_ten(self, basic_strategy):
        assert basic_strategy.get_action(10, 6, is_pair=True, pair_value=5) == Action.DOUBLE

    def test_unsplittable_pair_plays_as_total(self, basic_strategy, pair_8s_hand):
        lookup = basic_strategy.lookup_hand(pair_8s_hand, TEN, can_split=False)
        assert lookup.hand_type == "hard"
        assert lookup.action == Action.HIT

    def test_tables_cover_every_dealer_card(self, basic_strategy):
        for total in range(5, 22):
            for dealer_up in range(2, 12):
                assert (total, dealer_up) in basic_strategy.hard_table

    def test_face_card_up_is_a_ten(self, basic_strategy, hard_16_hand):
        queen = Card(Rank.QUEEN, Suit.HEARTS)
        assert basic_strategy.lookup_hand(hard_16_hand, queen).dealer_value == 10


class TestDeviations:
    """Tests for the index play table."""

    def test_order_first_match_wins(self, hand_of):
        hand = hand_of("10S 6H")
        assert find_deviation(hand, TEN, 0.0).index == 0.0
        assert find_deviation(hand, TEN, -0.5) is None

    def test_soft_and_pair_hands_excluded(self, hand_of):
        assert find_deviation(hand_of("AS 5H"), TEN, 10) is None
        assert find_deviation(hand_of("6S 6H"), Card(Rank.TWO, Suit.CLUBS), 10) is None

    def test_double_11_vs_ace(self, hand_of):
        play = find_deviation(hand_of("5S 6H"), ACE, 1.0)
        assert play.action == Action.DOUBLE

    def test_table_has_insurance(self):
        assert any(play.player_total is None for play in INDEX_PLAYS)


class TestStrategyAdvisor:
    """Tests for hints and decision accuracy."""

    def test_hint_for_hard_17_vs_6(self, advisor, hand_of):
        """10-7 against a 6 stands."""
        hint = advisor.hint(hand_of("10S 7H"), SIX)
        assert hint.action == Action.STAND
        assert hint.hand_type == "hard"
        assert hint.player_value == 17
        assert hint.dealer_value == 6
        assert "17" in hint.explanation
        assert advisor.total_hints == 1

    def test_hitting_against_advice_is_incorrect(self, advisor, hand_of):
        hint = advisor.hint(hand_of("10S 7H"), SIX)
        record = advisor.record_decision(hint, Action.HIT)
        assert not record.correct
        assert advisor.accuracy == 0.0
        assert advisor.common_mistakes()[0]["scenario"] == "hard_17_vs_6"

    def test_following_advice_is_correct(self, advisor, pair_8s_hand):
        hint = advisor.hint(pair_8s_hand, SIX)
        assert hint.action == Action.SPLIT
        assert advisor.record_decision(hint, Action.SPLIT).correct
        assert advisor.accuracy == 100.0
        assert advisor.grade == "A+"
        assert advisor.accuracy_by_hand_type() == {"pair": 100.0}

    def test_recommend_does_not_count(self, advisor, hard_16_hand):
        assert advisor.recommend(hard_16_hand, TEN) == Action.HIT
        assert advisor.total_hints == 0

    def test_alternatives(self, advisor, pair_8s_hand):
        actions = [alt.action for alt in advisor.alternatives(pair_8s_hand, SIX)]
        assert actions == [Action.HIT, Action.STAND, Action.DOUBLE, Action.SPLIT]

    def test_alternatives_at_21(self, advisor, hand_of):
        actions = [alt.action for alt in advisor.alternatives(hand_of("7S 7H 7C"), SIX, can_double=False)]
        assert actions == [Action.STAND]

    def test_double_unavailable_explanation(self, advisor, hand_of):
        hint = advisor.hint(hand_of("5S 4H 2C"), SIX, can_double=False)
        assert hint.action == Action.HIT
        assert "doubling isn't available" in hint.explanation

    def test_analyze_situation(self, advisor, hard_16_hand):
        analysis = advisor.analyze_situation(hard_16_hand, TEN)
        assert analysis["dealer_strength"] == "strong"
        assert analysis["bust_risk"] == 62

    def test_assess_risk(self, hard_16_hand, hand_of):
        risk = StrategyAdvisor.assess_risk(hard_16_hand, Action.HIT)
        assert risk == {"level": "high", "description": "62% chance of busting"}
        assert StrategyAdvisor.assess_risk(hand_of("5S 6H"), Action.HIT)["level"] == "low"
        assert StrategyAdvisor.assess_risk(hard_16_hand, Action.STAND)["level"] == "medium"
        assert StrategyAdvisor.assess_risk(hand_of("10S 8H"), Action.STAND)["level"] == "low"
        assert StrategyAdvisor.assess_risk(hard_16_hand, Action.DOUBLE)["level"] == "medium"

    def test_reset_and_export(self, advisor, hard_16_hand):
        hint = advisor.hint(hard_16_hand, TEN)
        advisor.record_decision(hint, Action.STAND)
        data = advisor.export_data()

        restored = StrategyAdvisor()
        restored.import_data(data)
        assert restored.total_hints == 1
        assert restored.correct_decisions == 0
        assert restored.decisions[0].player_action == Action.STAND

        advisor.reset()
        assert advisor.total_hints == 0
        assert advisor.decisions == []

    @pytest.mark.parametrize(
        "accuracy,grade", [(100, "A+"), (92, "A"), (80, "B"), (61, "D"), (10, "F")]
    )
    def test_grades(self, accuracy, grade):
        assert accuracy_grade(accuracy) == grade

    def test_helpers(self):
        assert bust_risk(11) == 0
        assert bust_risk(16) == 62
        assert bust_risk(20) == 100
        assert dealer_strength(5) == "weak"
        assert dealer_strength(8) == "medium"
        assert dealer_strength(11) == "strong"
