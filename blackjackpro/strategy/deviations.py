"""Count-based deviations from basic strategy."""

from dataclasses import dataclass

from blackjackpro.cards import Card
from blackjackpro.hand import Hand
from blackjackpro.strategy.basic import Action, dealer_value

INSURANCE = "Take Insurance"


@dataclass(frozen=True)
class IndexPlay:
    """
    An index play (strategy deviation based on count).

    When the true count meets or exceeds the index, deviate from basic strategy.
    A play without a player total applies to any hand (insurance).
    """

    player_total: int | None
    dealer_upcard: int  # 2-11 (11 = Ace)
    action: Action | None  # None for the insurance decision
    index: float
    description: str = ""

    @property
    def action_name(self) -> str:
        return str(self.action) if self.action else INSURANCE

    def matches(self, hand: Hand, dealer_card: Card) -> bool:
        """
        Check whether the play covers this hand.

        Totals are matched against hard, unpaired hands only; pairs and soft
        hands are decided by their own tables. This is deliberately narrower
        than matching on the total alone, which would have 8-8 or A-5 stand
        against a ten at a count of zero. Every ten-value up-card (10, J, Q,
        K) counts as a 10.
        """
        if dealer_value(dealer_card) != self.dealer_upcard:
            return False
        if self.player_total is None:
            return True
        if hand.is_pair or hand.is_soft:
            return False
        return hand.value == self.player_total

    def should_deviate(self, true_count: float) -> bool:
        return true_count >= self.index


@dataclass(frozen=True)
class IndexRecommendation:
    """Outcome of checking the index plays for a hand."""

    has_deviation: bool
    action: str | None
    reason: str
    confidence: str

    @classmethod
    def none(cls, confidence: str) -> "IndexRecommendation":
        return cls(False, None, "No index play deviation recommended", confidence)


# Evaluated in order, first match wins
INDEX_PLAYS: list[IndexPlay] = [
    IndexPlay(16, 10, Action.STAND, 0.0, "Stand 16 vs 10 when TC ≥ 0"),
    IndexPlay(15, 10, Action.STAND, 4.0, "Stand 15 vs 10 when TC ≥ +4"),
    IndexPlay(12, 2, Action.STAND, 3.0, "Stand 12 vs 2 when TC ≥ +3"),
    IndexPlay(12, 3, Action.STAND, 2.0, "Stand 12 vs 3 when TC ≥ +2"),
    IndexPlay(11, 11, Action.DOUBLE, 1.0, "Double 11 vs A when TC ≥ +1"),
    IndexPlay(None, 11, None, 3.0, "Take insurance when TC ≥ +3"),
]


def find_deviation(
    hand: Hand,
    dealer_card: Card,
    true_count: float,
    plays: list[IndexPlay] = INDEX_PLAYS,
) -> IndexPlay | None:
    """
    Find the first index play that applies at the given true count.

    Args:
        hand: Player's hand
        dealer_card: Dealer's up-card
        true_count: Current true count
        plays: Index plays to check, in priority order

    Returns:
        The matching IndexPlay, or None to play basic strategy
    """
    for play in plays:
        if play.matches(hand, dealer_card) and play.should_deviate(true_count):
            return play
    return None
