"""Abstract base class for card counting systems."""

from abc import ABC, abstractmethod
from typing import Mapping

from blackjackpro.cards import Card, Rank


class CountingSystem(ABC):
    """
    Tag values for a card counting system.

    A system only knows how to value cards; the running total and the
    shoe bookkeeping live in CardCounter.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def tag_values(self) -> Mapping[Rank, int]:
        """Map each Rank to its count value."""
        ...

    @property
    def is_balanced(self) -> bool:
        """A balanced system sums to 0 over a complete deck."""
        return self.full_deck_sum == 0

    @property
    def full_deck_sum(self) -> int:
        # Each rank appears 4 times in a deck (once per suit)
        return sum(self.tag_values[rank] * 4 for rank in Rank)

    def tag(self, card: Card) -> int:
        return self.tag_values[card.rank]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
