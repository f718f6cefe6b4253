"""Strategy tables, deviations and the hint advisor."""

from blackjackpro.strategy.advisor import StrategyAdvisor, StrategyHint
from blackjackpro.strategy.basic import Action, BasicStrategy
from blackjackpro.strategy.deviations import INDEX_PLAYS, IndexPlay
from blackjackpro.strategy.rules import HandResult, RuleSet

__all__ = [
    "Action",
    "BasicStrategy",
    "HandResult",
    "INDEX_PLAYS",
    "IndexPlay",
    "RuleSet",
    "StrategyAdvisor",
    "StrategyHint",
]
