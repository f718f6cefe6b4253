"""Card and Shoe classes - immutable cards drawn from a conserving shoe."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator

from blackjackpro.errors import ShoeExhaustedError

logger = logging.getLogger(__name__)

CARDS_PER_DECK = 52


class Suit(Enum):
    """Card suits."""

    CLUBS = auto()
    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        return _SUIT_SYMBOLS[self]


_SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE

    @property
    def is_ten_value(self) -> bool:
        return self.blackjack_value == 10

    @property
    def hi_lo_value(self) -> int:
        """Return the Hi-Lo tag: +1 for 2-6, 0 for 7-9, -1 for tens and aces."""
        if self.value <= 6:
            return 1
        if self.value <= 9:
            return 0
        return -1


_RANK_CODES = {
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "T": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
    "A": Rank.ACE,
}

_SUIT_CODES = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        return self.rank.is_ten_value

    @property
    def hi_lo_value(self) -> int:
        return self.rank.hi_lo_value

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', '10h'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]
        if rank_str not in _RANK_CODES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_CODES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_CODES[rank_str], _SUIT_CODES[suit_str])


def cards_from_string(s: str) -> list[Card]:
    """Parse a space separated list of cards, e.g. '10♠ 7♥ 6♦'."""
    return [Card.from_string(token) for token in s.split()]


class Shoe:
    """
    A multi-deck shoe with a draw stack and a discard pile.

    Every card is always in exactly one of three places: the draw stack,
    the discard pile, or in play on the table. Cards leave play through
    ``discard`` and only return to the draw stack when the shoe is shuffled.
    """

    def __init__(
        self,
        num_decks: int = 6,
        penetration: float = 0.75,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a shoe with multiple decks, unshuffled.

        Args:
            num_decks: Number of decks in the shoe
            penetration: Fraction of shoe dealt before a reshuffle is due (0.0-1.0)
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if not 0.0 < penetration <= 1.0:
            raise ValueError("Penetration must be between 0 and 1")

        self._num_decks = num_decks
        self._penetration = penetration
        self._rng = rng or Random()
        self._draw_stack: list[Card] = []
        self._discard: list[Card] = []
        self._in_play: list[Card] = []
        self._shuffle_count = 0
        self.reset()

    def reset(self) -> None:
        """Rebuild the shoe with every card back in the draw stack, in order."""
        self._draw_stack = [
            Card(rank, suit)
            for _ in range(self._num_decks)
            for suit in Suit
            for rank in Rank
        ]
        self._discard.clear()
        self._in_play.clear()

    def shuffle(self) -> None:
        """Merge the discard pile into the draw stack and shuffle it."""
        self._draw_stack.extend(self._discard)
        self._discard.clear()
        # random.shuffle is a single Fisher-Yates pass
        self._rng.shuffle(self._draw_stack)
        self._shuffle_count += 1
        logger.info(
            "Shoe shuffled: %d cards in draw stack, %d in play",
            len(self._draw_stack),
            len(self._in_play),
        )

    def draw(self) -> Card:
        """
        Draw the top card of the shoe.

        An empty draw stack forces a reshuffle of the discard pile first.

        Raises:
            ShoeExhaustedError: If no card is available even after reshuffling
        """
        if not self._draw_stack:
            logger.warning("Draw stack empty, forcing reshuffle")
            self.shuffle()
        if not self._draw_stack:
            raise ShoeExhaustedError("Shoe is exhausted after a forced reshuffle")
        card = self._draw_stack.pop()
        self._in_play.append(card)
        return card

    def discard(self, cards: Iterable[Card]) -> None:
        """
        Move cards from the table to the discard pile.

        Raises:
            ValueError: If a card was not drawn from this shoe
        """
        for card in cards:
            try:
                self._in_play.remove(card)
            except ValueError:
                raise ValueError(f"{card} is not in play") from None
            self._discard.append(card)

    def set_order(self, cards: Iterable[Card]) -> None:
        """
        Stack specific cards on top of the shoe for practice scenarios.

        The first card given will be the next card drawn. Cards are taken
        from the draw stack, or from the discard pile when already dealt.

        Raises:
            ValueError: If a requested card is not available
        """
        stacked: list[Card] = []
        for card in cards:
            if card in self._draw_stack:
                self._draw_stack.remove(card)
            elif card in self._discard:
                self._discard.remove(card)
            else:
                raise ValueError(f"{card} is not available to stack")
            stacked.append(card)
        self._draw_stack.extend(reversed(stacked))

    @property
    def needs_reshuffle(self) -> bool:
        """Check if the draw stack has reached the shuffle point."""
        return len(self._draw_stack) <= self.shuffle_point

    @property
    def shuffle_point(self) -> int:
        """Number of remaining cards at which the shoe is reshuffled."""
        return int(self.total_cards * (1 - self._penetration))

    @property
    def cards_remaining(self) -> int:
        return len(self._draw_stack)

    @property
    def cards_dealt(self) -> int:
        """Return the number of cards dealt since the last shuffle."""
        return self.total_cards - len(self._draw_stack)

    @property
    def discard_count(self) -> int:
        return len(self._discard)

    @property
    def in_play_count(self) -> int:
        return len(self._in_play)

    @property
    def total_cards(self) -> int:
        return self._num_decks * CARDS_PER_DECK

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def decks_remaining(self) -> float:
        return len(self._draw_stack) / CARDS_PER_DECK

    @property
    def penetration(self) -> float:
        """Return the configured penetration."""
        return self._penetration

    @property
    def penetration_percent(self) -> float:
        """Return the percentage of the shoe dealt so far."""
        return self.cards_dealt / self.total_cards * 100

    @property
    def shuffle_count(self) -> int:
        return self._shuffle_count

    def __len__(self) -> int:
        return len(self._draw_stack)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._draw_stack)
