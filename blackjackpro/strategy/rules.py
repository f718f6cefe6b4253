"""Blackjack rule variations and the policy checks that depend on them."""

import math
from dataclasses import asdict, dataclass
from enum import Enum

from blackjackpro.cards import Card, Rank
from blackjackpro.hand import Hand


class HandResult(Enum):
    """Outcome of one player hand against the dealer."""

    BLACKJACK = "blackjack"
    WIN = "win"
    PUSH = "push"
    LOSE = "lose"


@dataclass(frozen=True)
class RuleSet:
    """
    Blackjack table rules configuration.

    A rule set is fixed for a session; the presets below are alternate
    parameter bags for common casino variations.
    """

    # Deck configuration
    num_decks: int = 6
    penetration: float = 0.75

    # Betting limits
    min_bet: int = 5
    max_bet: int = 500

    # Dealer rules
    dealer_stands_on_soft_17: bool = True

    # Payout ratios (3:2 = 1.5, 6:5 = 1.2)
    blackjack_payout: float = 1.5
    insurance_payout: float = 2.0

    # Double and split rules
    double_after_split: bool = True
    resplit_aces: bool = False
    hit_split_aces: bool = False
    max_split_hands: int = 4

    # Only affects the house edge estimate and strategy tables
    surrender_allowed: bool = False

    allow_insurance: bool = True

    # N-card Charlie
    charlie_rule: bool = False
    charlie_cards: int = 5

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if not 0.0 < self.penetration <= 1.0:
            raise ValueError("penetration must be between 0 and 1")
        if self.min_bet < 1 or self.max_bet < self.min_bet:
            raise ValueError("bet limits must satisfy 1 <= min_bet <= max_bet")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")
        if self.max_split_hands < 1:
            raise ValueError("max_split_hands must be at least 1")
        if self.charlie_cards < 3:
            raise ValueError("charlie_cards must be at least 3")

    # --- Presets ---

    @classmethod
    def las_vegas(cls) -> "RuleSet":
        return cls(dealer_stands_on_soft_17=True, double_after_split=True, surrender_allowed=True)

    @classmethod
    def atlantic_city(cls) -> "RuleSet":
        return cls(dealer_stands_on_soft_17=False, double_after_split=True, surrender_allowed=True)

    @classmethod
    def european(cls) -> "RuleSet":
        return cls(dealer_stands_on_soft_17=True, double_after_split=False, surrender_allowed=False)

    @classmethod
    def single_deck(cls) -> "RuleSet":
        """Single deck, 6:5 blackjack."""
        return cls(
            num_decks=1,
            dealer_stands_on_soft_17=True,
            double_after_split=False,
            blackjack_payout=1.2,
        )

    @classmethod
    def liberal(cls) -> "RuleSet":
        return cls(
            dealer_stands_on_soft_17=True,
            double_after_split=True,
            surrender_allowed=True,
            resplit_aces=True,
            hit_split_aces=True,
            charlie_rule=True,
        )

    @classmethod
    def conservative(cls) -> "RuleSet":
        return cls(
            dealer_stands_on_soft_17=False,
            double_after_split=False,
            blackjack_payout=1.2,
            max_split_hands=2,
        )

    @classmethod
    def variation(cls, name: str) -> "RuleSet":
        """
        Look up a preset by name ('las-vegas', 'single_deck', ...).

        Unknown names fall back to the default rules.
        """
        presets = {
            "las_vegas": cls.las_vegas,
            "atlantic_city": cls.atlantic_city,
            "european": cls.european,
            "single_deck": cls.single_deck,
            "liberal": cls.liberal,
            "conservative": cls.conservative,
        }
        factory = presets.get(name.strip().lower().replace("-", "_"))
        return factory() if factory else cls()

    # --- Policy checks ---

    def dealer_should_hit(self, hand: Hand) -> bool:
        """Dealer hits below 17, and on soft 17 unless the table stands on it."""
        value = hand.value
        if value < 17:
            return True
        return value == 17 and hand.is_soft and not self.dealer_stands_on_soft_17

    def can_double_down(self, hand: Hand) -> bool:
        """Two-card hands only; split hands need double-after-split."""
        if len(hand.cards) != 2 or hand.is_doubled:
            return False
        return not hand.is_split or self.double_after_split

    def can_split(self, hand: Hand, current_hand_count: int) -> bool:
        """
        Check a pair can be split given how many hands are already in play.

        Args:
            hand: The hand to split
            current_hand_count: Number of player hands currently on the table

        Returns:
            True if the split is allowed
        """
        if not hand.is_pair:
            return False
        if current_hand_count >= self.max_split_hands:
            return False
        if hand.cards[0].rank == Rank.ACE and hand.is_split and not self.resplit_aces:
            return False
        return True

    def can_take_insurance(
        self,
        dealer_up_card: Card | None,
        hand: Hand,
        insurance_taken: bool = False,
    ) -> bool:
        if not self.allow_insurance or insurance_taken or dealer_up_card is None:
            return False
        return dealer_up_card.is_ace and len(hand.cards) == 2

    def is_natural(self, hand: Hand) -> bool:
        """A two-card 21 that was not formed by splitting."""
        return hand.is_blackjack and not hand.is_split

    def is_charlie(self, hand: Hand) -> bool:
        return (
            self.charlie_rule
            and len(hand.cards) >= self.charlie_cards
            and not hand.is_busted
        )

    def determine_result(self, player: Hand, dealer: Hand) -> HandResult:
        """
        Decide a player hand against the dealer.

        Naturals are checked first, then busts, then the Charlie rule,
        and finally the totals are compared.
        """
        player_bj = self.is_natural(player)
        dealer_bj = self.is_natural(dealer)

        if player_bj and dealer_bj:
            return HandResult.PUSH
        if player_bj:
            return HandResult.BLACKJACK
        if dealer_bj:
            return HandResult.LOSE
        if player.is_busted:
            return HandResult.LOSE
        if dealer.is_busted:
            return HandResult.WIN
        if self.is_charlie(player):
            return HandResult.WIN
        if player.value > dealer.value:
            return HandResult.WIN
        if player.value < dealer.value:
            return HandResult.LOSE
        return HandResult.PUSH

    # --- Payout math ---

    def blackjack_payout_amount(self, bet: int) -> int:
        """Winnings on a natural, rounded down (25 at 3:2 pays 37)."""
        return math.floor(bet * self.blackjack_payout)

    def insurance_payout_amount(self, insurance_bet: int) -> int:
        """Winnings on an insurance bet when the dealer has blackjack."""
        return math.floor(insurance_bet * self.insurance_payout)

    def payout(self, result: HandResult, bet: int) -> int:
        """
        Total amount returned to the player for a hand, stake included.

        Args:
            result: The hand result
            bet: The amount wagered on that hand

        Returns:
            0 for a loss, the stake for a push, twice the stake for a win
        """
        if result == HandResult.BLACKJACK:
            return bet + self.blackjack_payout_amount(bet)
        if result == HandResult.WIN:
            return bet * 2
        if result == HandResult.PUSH:
            return bet
        return 0

    def is_valid_bet(self, amount: int, bankroll: float) -> tuple[bool, str]:
        """Check a bet against table limits and the available bankroll."""
        if amount < self.min_bet:
            return False, f"Minimum bet is ${self.min_bet}"
        if amount > self.max_bet:
            return False, f"Maximum bet is ${self.max_bet}"
        if amount > bankroll:
            return False, "Insufficient funds"
        return True, "Valid bet"

    def house_edge(self) -> float:
        """Rough house edge percentage for perfect basic strategy under these rules."""
        edge = 0.5
        if not self.dealer_stands_on_soft_17:
            edge += 0.22
        if not self.double_after_split:
            edge += 0.14
        if not self.surrender_allowed:
            edge += 0.07
        if self.blackjack_payout < 1.5:
            edge += (1.5 - self.blackjack_payout) * 2.3
        if self.charlie_rule:
            edge -= 0.16
        return round(edge, 2)

    def summary(self) -> dict[str, str]:
        def allowed(flag: bool) -> str:
            return "Allowed" if flag else "Not Allowed"

        return {
            "Dealer Stands on Soft 17": "Yes" if self.dealer_stands_on_soft_17 else "No",
            "Double After Split": allowed(self.double_after_split),
            "Surrender": allowed(self.surrender_allowed),
            "Blackjack Payout": f"{self.blackjack_payout}:1",
            "Max Split Hands": str(self.max_split_hands),
            "Resplit Aces": allowed(self.resplit_aces),
            "Hit Split Aces": allowed(self.hit_split_aces),
            "House Edge": f"{self.house_edge()}%",
        }

    def to_dict(self) -> dict:
        return asdict(self)
