"""Statistical calculations and session tracking."""

from blackjackpro.statistics.bankroll import risk_of_ruin, units_in_bankroll
from blackjackpro.statistics.kelly import fractional_kelly_bet, kelly_criterion
from blackjackpro.statistics.session import HandRecord, SessionStats

__all__ = [
    "HandRecord",
    "SessionStats",
    "fractional_kelly_bet",
    "kelly_criterion",
    "risk_of_ruin",
    "units_in_bankroll",
]
