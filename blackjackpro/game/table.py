"""Cards on the table for the current hand, and undo snapshots of them."""

from dataclasses import dataclass, field
from datetime import datetime

from blackjackpro.cards import Card
from blackjackpro.game.state import GamePhase
from blackjackpro.hand import Hand

HIDDEN_CARD = "??"


@dataclass
class Table:
    """
    Player hands and the dealer hand for one round.

    The dealer's first card is the hole card and the second the up-card.
    """

    player_hands: list[Hand] = field(default_factory=lambda: [Hand()])
    dealer_hand: Hand = field(default_factory=Hand)
    current_hand_index: int = 0
    hole_revealed: bool = False
    insurance_offered_at: float | None = None
    insurance_resolved: bool = False

    @property
    def current_hand(self) -> Hand | None:
        """Get the active player hand."""
        if 0 <= self.current_hand_index < len(self.player_hands):
            return self.player_hands[self.current_hand_index]
        return None

    @property
    def hole_card(self) -> Card | None:
        return self.dealer_hand.cards[0] if self.dealer_hand.cards else None

    @property
    def up_card(self) -> Card | None:
        cards = self.dealer_hand.cards
        return cards[1] if len(cards) > 1 else None

    @property
    def insurance_pending(self) -> bool:
        return self.insurance_offered_at is not None and not self.insurance_resolved

    @property
    def doubled_count(self) -> int:
        return sum(1 for hand in self.player_hands if hand.is_doubled)

    @property
    def bet_units(self) -> int:
        """Number of equal wager units on the table: one per hand plus one per double."""
        return len(self.player_hands) + self.doubled_count

    @property
    def all_busted(self) -> bool:
        return all(hand.is_busted for hand in self.player_hands)

    def dealer_visible_value(self) -> int | None:
        """Dealer total the player can see: the up-card alone until the hole card turns."""
        if self.hole_revealed:
            return self.dealer_hand.value
        if self.up_card is None:
            return None
        return self.up_card.value

    def all_cards(self) -> list[Card]:
        cards = [card for hand in self.player_hands for card in hand.cards]
        cards.extend(self.dealer_hand.cards)
        return cards

    def reset(self) -> None:
        self.player_hands = [Hand()]
        self.dealer_hand = Hand()
        self.current_hand_index = 0
        self.hole_revealed = False
        self.insurance_offered_at = None
        self.insurance_resolved = False


@dataclass(frozen=True)
class HandState:
    cards: tuple[Card, ...]
    is_doubled: bool
    is_split: bool

    @classmethod
    def of(cls, hand: Hand) -> "HandState":
        return cls(tuple(hand.cards), hand.is_doubled, hand.is_split)

    def restore(self) -> Hand:
        return Hand(cards=list(self.cards), is_doubled=self.is_doubled, is_split=self.is_split)


@dataclass(frozen=True)
class ActionRecord:
    """Everything an undo needs to put the table back as it was before an action."""

    action: str
    player_hands: tuple[HandState, ...]
    dealer_hand: HandState
    current_hand_index: int
    current_bet: int
    insurance_bet: int
    phase: GamePhase
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def capture(
        cls,
        action: str,
        table: Table,
        current_bet: int,
        insurance_bet: int,
        phase: GamePhase,
    ) -> "ActionRecord":
        return cls(
            action=action,
            player_hands=tuple(HandState.of(hand) for hand in table.player_hands),
            dealer_hand=HandState.of(table.dealer_hand),
            current_hand_index=table.current_hand_index,
            current_bet=current_bet,
            insurance_bet=insurance_bet,
            phase=phase,
        )

    def cards(self) -> list[Card]:
        cards = [card for hand in self.player_hands for card in hand.cards]
        cards.extend(self.dealer_hand.cards)
        return cards

    def restore_into(self, table: Table) -> None:
        table.player_hands = [state.restore() for state in self.player_hands]
        table.dealer_hand = self.dealer_hand.restore()
        table.current_hand_index = self.current_hand_index
