"""Card counting systems and the live counter."""

from blackjackpro.counting.base import CountingSystem
from blackjackpro.counting.counter import CardCounter, CountingState
from blackjackpro.counting.hilo import HiLoSystem

__all__ = [
    "CardCounter",
    "CountingState",
    "CountingSystem",
    "HiLoSystem",
]
