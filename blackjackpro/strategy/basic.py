"""Basic strategy tables for blackjack."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Mapping

from blackjackpro.cards import Card
from blackjackpro.hand import Hand

HandType = Literal["pair", "soft", "hard"]

DEALER_VALUES = range(2, 12)  # 2-10, Ace = 11


class Action(Enum):
    """Possible player actions, valued by their display name."""

    HIT = "Hit"
    STAND = "Stand"
    DOUBLE = "Double Down"
    SPLIT = "Split"
    SURRENDER = "Surrender"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class StrategyLookup:
    """Result of a table lookup for one hand against one dealer card."""

    hand_type: HandType
    total: int  # hand value, or the card value for a pair lookup
    dealer_value: int
    table_action: Action
    action: Action

    @property
    def double_unavailable(self) -> bool:
        """The table said double but the hand cannot double."""
        return self.table_action == Action.DOUBLE and self.action != Action.DOUBLE


def dealer_value(card: Card) -> int:
    """Strategy column for a dealer up-card (faces count 10, Ace 11)."""
    return card.value


class BasicStrategy:
    """
    Basic strategy lookup tables.

    Pre-computed dictionaries keyed by (player total, dealer value) for O(1)
    lookup. Pairs are keyed by the card value of the pair (Ace = 11).
    """

    def __init__(self) -> None:
        self._hard_table = self._build_hard_table()
        self._soft_table = self._build_soft_table()
        self._pair_table = self._build_pair_table()

    def get_action(
        self,
        player_total: int,
        dealer_upcard: int,
        is_soft: bool = False,
        is_pair: bool = False,
        pair_value: int | None = None,
        can_double: bool = True,
        can_split: bool = True,
    ) -> Action:
        """
        Get the basic strategy action.

        Args:
            player_total: Player's hand total
            dealer_upcard: Dealer's upcard value (2-11, Ace=11)
            is_soft: Whether the hand is soft
            is_pair: Whether the hand is a pair
            pair_value: Card value of the pair (for pair decisions)
            can_double: Whether doubling is allowed
            can_split: Whether splitting is allowed

        Returns:
            The recommended action
        """
        return self._lookup(
            player_total, dealer_upcard, is_soft, is_pair, pair_value, can_double, can_split
        ).action

    def lookup_hand(
        self,
        hand: Hand,
        dealer_card: Card,
        can_double: bool = True,
        can_split: bool = True,
    ) -> StrategyLookup:
        """Look up a live hand against the dealer's up-card."""
        return self._lookup(
            hand.value,
            dealer_value(dealer_card),
            hand.is_soft,
            hand.is_pair,
            hand.cards[0].value if hand.is_pair else None,
            can_double,
            can_split,
        )

    def _lookup(
        self,
        player_total: int,
        dealer_upcard: int,
        is_soft: bool,
        is_pair: bool,
        pair_value: int | None,
        can_double: bool,
        can_split: bool,
    ) -> StrategyLookup:
        # Pairs first; a pair that should not be split is played as a hard total
        if is_pair and can_split and pair_value is not None:
            action = self._pair_table.get((pair_value, dealer_upcard))
            if action == Action.SPLIT:
                return StrategyLookup("pair", pair_value, dealer_upcard, action, action)
            return self._resolve("pair", player_total, dealer_upcard, self._hard(player_total, dealer_upcard), can_double)

        if is_soft:
            action = self._soft_table.get((player_total, dealer_upcard))
            if action:
                return self._resolve("soft", player_total, dealer_upcard, action, can_double)

        return self._resolve("hard", player_total, dealer_upcard, self._hard(player_total, dealer_upcard), can_double)

    def _hard(self, player_total: int, dealer_upcard: int) -> Action:
        action = self._hard_table.get((player_total, dealer_upcard))
        if action:
            return action
        return Action.STAND if player_total >= 17 else Action.HIT

    def _resolve(
        self,
        hand_type: HandType,
        total: int,
        dealer_upcard: int,
        action: Action,
        can_double: bool,
    ) -> StrategyLookup:
        resolved = Action.HIT if action == Action.DOUBLE and not can_double else action
        return StrategyLookup(hand_type, total, dealer_upcard, action, resolved)

    def _build_hard_table(self) -> Mapping[tuple[int, int], Action]:
        """Build hard totals strategy table."""
        H = Action.HIT
        S = Action.STAND
        D = Action.DOUBLE

        table: dict[tuple[int, int], Action] = {}

        # Hard 5-8: Always hit
        for total in range(5, 9):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = H

        # Hard 9
        for dealer in DEALER_VALUES:
            table[(9, dealer)] = D if 3 <= dealer <= 6 else H

        # Hard 10
        for dealer in DEALER_VALUES:
            table[(10, dealer)] = D if dealer <= 9 else H

        # Hard 11
        for dealer in DEALER_VALUES:
            table[(11, dealer)] = D if dealer <= 10 else H

        # Hard 12
        for dealer in DEALER_VALUES:
            table[(12, dealer)] = S if 4 <= dealer <= 6 else H

        # Hard 13-16
        for total in range(13, 17):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = S if dealer <= 6 else H

        # Hard 17+: Always stand
        for total in range(17, 22):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = S

        return table

    def _build_soft_table(self) -> Mapping[tuple[int, int], Action]:
        """Build soft totals strategy table."""
        H = Action.HIT
        S = Action.STAND
        D = Action.DOUBLE

        table: dict[tuple[int, int], Action] = {}

        # Soft 12 (A,A unsplit): cannot bust
        for dealer in DEALER_VALUES:
            table[(12, dealer)] = H

        # Soft 13-14 (A,2 / A,3)
        for total in (13, 14):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = D if dealer in (5, 6) else H

        # Soft 15-16 (A,4 / A,5)
        for total in (15, 16):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = D if 4 <= dealer <= 6 else H

        # Soft 17 (A,6)
        for dealer in DEALER_VALUES:
            table[(17, dealer)] = D if 3 <= dealer <= 6 else H

        # Soft 18 (A,7)
        table[(18, 2)] = S
        for dealer in [3, 4, 5, 6]:
            table[(18, dealer)] = D
        for dealer in [7, 8]:
            table[(18, dealer)] = S
        for dealer in [9, 10, 11]:
            table[(18, dealer)] = H

        # Soft 19-21: Always stand
        for total in range(19, 22):
            for dealer in DEALER_VALUES:
                table[(total, dealer)] = S

        return table

    def _build_pair_table(self) -> Mapping[tuple[int, int], Action]:
        """Build pair splitting strategy table."""
        H = Action.HIT
        S = Action.STAND
        P = Action.SPLIT
        D = Action.DOUBLE

        table: dict[tuple[int, int], Action] = {}

        # Pair of 2s and 3s
        for value in (2, 3):
            for dealer in DEALER_VALUES:
                table[(value, dealer)] = P if dealer <= 7 else H

        # Pair of 4s
        for dealer in DEALER_VALUES:
            table[(4, dealer)] = P if dealer in (5, 6) else H

        # Pair of 5s: Never split, play as hard 10
        for dealer in DEALER_VALUES:
            table[(5, dealer)] = D if dealer <= 9 else H

        # Pair of 6s
        for dealer in DEALER_VALUES:
            table[(6, dealer)] = P if dealer <= 6 else H

        # Pair of 7s
        for dealer in DEALER_VALUES:
            table[(7, dealer)] = P if dealer <= 7 else H

        # Pair of 8s and Aces: Always split
        for value in (8, 11):
            for dealer in DEALER_VALUES:
                table[(value, dealer)] = P

        # Pair of 9s
        for dealer in DEALER_VALUES:
            table[(9, dealer)] = S if dealer in (7, 10, 11) else P

        # Ten-value pairs: Never split
        for dealer in DEALER_VALUES:
            table[(10, dealer)] = S

        return table

    @property
    def hard_table(self) -> Mapping[tuple[int, int], Action]:
        return self._hard_table

    @property
    def soft_table(self) -> Mapping[tuple[int, int], Action]:
        return self._soft_table

    @property
    def pair_table(self) -> Mapping[tuple[int, int], Action]:
        return self._pair_table
