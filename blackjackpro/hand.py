"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterator

from blackjackpro.cards import Card


@dataclass
class Hand:
    """A blackjack hand with value calculation."""

    cards: list[Card] = field(default_factory=list)
    is_doubled: bool = False
    is_split: bool = False

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def remove_card(self, index: int = -1) -> Card:
        """Remove and return a card (the last one by default)."""
        return self.cards.pop(index)

    def clear(self) -> None:
        """Remove all cards from the hand and reset its flags."""
        self.cards.clear()
        self.is_doubled = False
        self.is_split = False

    def copy(self) -> "Hand":
        return Hand(cards=list(self.cards), is_doubled=self.is_doubled, is_split=self.is_split)

    @property
    def value(self) -> int:
        """
        Calculate the best hand value.

        Every ace starts at 11 and is demoted to 1 while the total is over 21.
        Returns the highest value that doesn't bust, or the lowest bust value.
        """
        total = 0
        aces = 0

        for card in self.cards:
            if card.is_ace:
                aces += 1
            total += card.value

        while total > 21 and aces > 0:
            total -= 10
            aces -= 1

        return total

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).

        A hand is soft if it contains an ace that can be counted as 11
        without busting.
        """
        if not self.has_ace:
            return False
        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= 21

    @property
    def is_hard(self) -> bool:
        return not self.is_soft

    @property
    def is_blackjack(self) -> bool:
        """Check for 21 with exactly two cards."""
        return len(self.cards) == 2 and self.value == 21

    @property
    def is_busted(self) -> bool:
        return self.value > 21

    @property
    def is_pair(self) -> bool:
        """Check if the hand is a pair (two cards of same rank)."""
        return len(self.cards) == 2 and self.cards[0].rank == self.cards[1].rank

    @property
    def has_ace(self) -> bool:
        return any(card.is_ace for card in self.cards)

    @property
    def ace_count(self) -> int:
        return sum(1 for card in self.cards if card.is_ace)

    @property
    def num_cards(self) -> int:
        return len(self.cards)

    @property
    def display_value(self) -> str:
        """Value as shown to the player, e.g. '7/17' for a soft hand."""
        if self.is_soft and not self.is_blackjack:
            return f"{self.value - 10}/{self.value}"
        return str(self.value)

    @property
    def strategy_key(self) -> str:
        """Classify the hand as 'pair_<rank>', 'soft_<total less ace>' or 'hard_<total>'."""
        if self.is_pair:
            return f"pair_{self.cards[0].rank}"
        if self.is_soft:
            return f"soft_{self.value - 11}"
        return f"hard_{self.value}"

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
