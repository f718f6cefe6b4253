"""Dealing cards from the shoe onto the table."""

import logging

from config import config
from blackjackpro.cards import Card, Shoe
from blackjackpro.counting.counter import CardCounter
from blackjackpro.game.events import EventEmitter, EventType
from blackjackpro.game.state import GameState
from blackjackpro.game.table import HIDDEN_CARD, Table

logger = logging.getLogger(__name__)


class CardDealer:
    """
    Draws cards to hands and keeps the count in step with what the player sees.

    Shared by the action handler and the hand flow so that every card goes
    through the same counting and event path.
    """

    def __init__(
        self,
        shoe: Shoe,
        counter: CardCounter,
        state: GameState,
        events: EventEmitter,
        card_delay_ms: int = config.engine.card_delay_ms,
    ) -> None:
        self.shoe = shoe
        self.counter = counter
        self.state = state
        self.events = events
        self.card_delay_ms = card_delay_ms

    @property
    def delay_ms(self) -> int:
        """Suggested pause before showing the next card at the current game speed."""
        return round(self.card_delay_ms * self.state.settings.speed_multiplier)

    def reshuffle(self, reason: str = "penetration reached") -> None:
        """Shuffle the discard pile back in and start the count over."""
        self.shoe.shuffle()
        self._after_shuffle(reason)

    def _after_shuffle(self, reason: str) -> None:
        self.counter.reset()
        self.events.emit_new(
            EventType.SHOE_SHUFFLED,
            reason=reason,
            cards_remaining=self.shoe.cards_remaining,
            shuffle_count=self.shoe.shuffle_count,
        )
        self._emit_count()

    def _draw(self) -> Card:
        shuffles = self.shoe.shuffle_count
        card = self.shoe.draw()
        if self.shoe.shuffle_count != shuffles:
            self._after_shuffle("shoe ran out")
        return card

    def deal_to_player(self, table: Table, hand_index: int) -> Card:
        """Deal a face-up card to one of the player's hands."""
        card = self._draw()
        hand = table.player_hands[hand_index]
        hand.add_card(card)
        self._count(card, visible=True)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card),
            target="player",
            hand_index=hand_index,
            face_up=True,
            delay_ms=self.delay_ms,
        )
        self.events.emit_new(
            EventType.HAND_TOTAL_UPDATED,
            target="player",
            hand_index=hand_index,
            value=hand.value,
            display_value=hand.display_value,
            busted=hand.is_busted,
        )
        return card

    def deal_to_dealer(self, table: Table, face_up: bool = True) -> Card:
        """Deal a card to the dealer; the hole card goes face down and is not counted."""
        card = self._draw()
        table.dealer_hand.add_card(card)
        self._count(card, visible=face_up)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else HIDDEN_CARD,
            target="dealer",
            hand_index=None,
            face_up=face_up,
            delay_ms=self.delay_ms,
        )
        if face_up:
            self._emit_dealer_total(table)
        return card

    def reveal_hole_card(self, table: Table) -> Card | None:
        """Turn the hole card over, counting it now that it is visible."""
        if table.hole_revealed or table.hole_card is None:
            return None
        table.hole_revealed = True
        card = table.hole_card
        self._count(card, visible=True)
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(card),
            hand_value=table.dealer_hand.value,
            delay_ms=self.delay_ms,
        )
        self._emit_dealer_total(table)
        return card

    def _emit_dealer_total(self, table: Table) -> None:
        self.events.emit_new(
            EventType.HAND_TOTAL_UPDATED,
            target="dealer",
            hand_index=None,
            value=table.dealer_visible_value(),
            display_value=str(table.dealer_visible_value()),
            busted=table.hole_revealed and table.dealer_hand.is_busted,
        )

    def _count(self, card: Card, visible: bool) -> None:
        if self.counter.update_count(card, is_visible=visible) is not None:
            self._emit_count()

    def _emit_count(self) -> None:
        if not self.counter.enabled:
            return
        state = self.counter.state()
        self.events.emit_new(
            EventType.COUNT_UPDATED,
            running_count=state.running_count,
            true_count=round(state.true_count, 2),
            decks_remaining=round(state.decks_remaining, 2),
            penetration=round(state.penetration, 1),
            side_counts=state.side_counts,
        )
