"""Pytest fixtures for blackjack engine tests."""

import pytest
from decimal import Decimal
from random import Random

from blackjackpro.cards import Shoe, cards_from_string
from blackjackpro.counting import CardCounter, HiLoSystem
from blackjackpro.game import BlackjackGame, GameSettings
from blackjackpro.hand import Hand
from blackjackpro.strategy import BasicStrategy, RuleSet, StrategyAdvisor


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_hand(cards: str) -> Hand:
    return Hand(cards=cards_from_string(cards))


def stack_game(game: BlackjackGame, cards: str) -> BlackjackGame:
    """
    Put cards on top of the game's shoe.

    Deal order is player, dealer hole card, player, dealer up-card, then
    whatever the hand draws.
    """
    game.shoe.set_order(cards_from_string(cards))
    return game


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    s = Shoe(num_decks=6, penetration=0.75, rng=rng)
    s.shuffle()
    return s


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS 6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S 6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return make_hand("8S 8H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S 6H KC")


@pytest.fixture
def hilo():
    """Hi-Lo counting system."""
    return HiLoSystem()


@pytest.fixture
def counter():
    """An enabled counter for a 6-deck shoe."""
    c = CardCounter(total_decks=6)
    c.set_enabled(True)
    return c


@pytest.fixture
def rules():
    """Default ruleset."""
    return RuleSet()


@pytest.fixture
def basic_strategy():
    """Basic strategy tables."""
    return BasicStrategy()


@pytest.fixture
def advisor():
    return StrategyAdvisor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game(rng, clock):
    """A new game with a seeded 6-deck shoe and a $1000 bank."""
    return BlackjackGame(rng=rng, clock=clock, initial_bank=Decimal("1000"))


@pytest.fixture
def counting_game(rng, clock):
    """A game with card counting switched on."""
    return BlackjackGame(
        settings=GameSettings(card_counting_mode=True),
        rng=rng,
        clock=clock,
        initial_bank=Decimal("1000"),
    )


@pytest.fixture
def hand_of():
    """Factory for hands written as card strings, e.g. hand_of("AS 6H")."""
    return make_hand


@pytest.fixture
def stacked(game):
    """Factory stacking cards on top of the game's shoe."""
    return lambda cards: stack_game(game, cards)
