"""Player actions: availability, execution and undo."""

import logging
from collections import Counter, deque
from enum import Enum
from typing import Callable

from blackjackpro.errors import ActionUnavailableError, InvalidPhaseError, UndoUnavailableError
from blackjackpro.game.dealer import CardDealer
from blackjackpro.game.events import EventEmitter, EventType, Severity
from blackjackpro.game.state import GamePhase, GameState
from blackjackpro.game.table import ActionRecord, Table
from blackjackpro.hand import Hand
from blackjackpro.statistics.session import SessionStats
from blackjackpro.strategy.basic import Action
from blackjackpro.strategy.rules import RuleSet

logger = logging.getLogger(__name__)


class PlayerAction(str, Enum):
    """Commands the player can issue during a hand."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE_DOWN = "double_down"
    SPLIT = "split"
    INSURANCE = "insurance"
    DECLINE_INSURANCE = "decline_insurance"

    def __str__(self) -> str:
        return self.value

    @property
    def strategy_action(self) -> Action | None:
        """The basic strategy action this command plays, if any."""
        return _STRATEGY_ACTIONS.get(self)

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_STRATEGY_ACTIONS = {
    PlayerAction.HIT: Action.HIT,
    PlayerAction.STAND: Action.STAND,
    PlayerAction.DOUBLE_DOWN: Action.DOUBLE,
    PlayerAction.SPLIT: Action.SPLIT,
}

_DESCRIPTIONS = {
    PlayerAction.HIT: "Take another card",
    PlayerAction.STAND: "Keep current hand",
    PlayerAction.DOUBLE_DOWN: "Double bet and take one card",
    PlayerAction.SPLIT: "Split pair into two hands",
    PlayerAction.INSURANCE: "Insure against dealer blackjack",
    PlayerAction.DECLINE_INSURANCE: "Play on without insurance",
}


class ActionOutcome(str, Enum):
    """What an action did to the active hand."""

    CONTINUE = "continue"
    BUST = "bust"
    TWENTY_ONE = "twenty_one"
    COMPLETE = "complete"
    INSURANCE_RESOLVED = "insurance_resolved"

    @property
    def ends_hand(self) -> bool:
        """The active hand is finished and play moves to the next one."""
        return self in (ActionOutcome.BUST, ActionOutcome.TWENTY_ONE, ActionOutcome.COMPLETE)


class ActionHandler:
    """
    Executes player actions against the table.

    Every action is checked against ``available_actions`` first, and a
    snapshot is pushed before anything changes so ``undo`` can put the
    table, bets and hand index back exactly.
    """

    def __init__(
        self,
        state: GameState,
        rules: RuleSet,
        dealer: CardDealer,
        stats: SessionStats,
        table: Table,
        events: EventEmitter,
    ) -> None:
        self.state = state
        self.rules = rules
        self.dealer = dealer
        self.stats = stats
        self.table = table
        self.events = events
        self._records: deque[ActionRecord] = deque(maxlen=state.undo_limit)

        self._handlers: dict[PlayerAction, Callable[[], ActionOutcome]] = {
            PlayerAction.HIT: self._hit,
            PlayerAction.STAND: self._stand,
            PlayerAction.DOUBLE_DOWN: self._double_down,
            PlayerAction.SPLIT: self._split,
            PlayerAction.INSURANCE: self._take_insurance,
            PlayerAction.DECLINE_INSURANCE: self._decline_insurance,
        }
        missing = set(PlayerAction) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for actions: {sorted(a.value for a in missing)}")

    # --- Availability ---

    @property
    def wager_unit(self) -> int:
        """The amount one hand carries before doubling."""
        units = self.table.bet_units
        return self.state.current_bet // units if units else 0

    def _can_cover(self, extra: int) -> bool:
        return self.stats.can_afford(self.state.current_bet + extra)

    def hand_is_locked(self, hand: Hand) -> bool:
        """Split aces take one card each unless the rules allow hitting them."""
        return (
            hand.is_split
            and len(hand.cards) >= 2
            and hand.cards[0].is_ace
            and not self.rules.hit_split_aces
        )

    def can_double_down(self) -> bool:
        hand = self.table.current_hand
        if hand is None or hand.value >= 21 or self.hand_is_locked(hand):
            return False
        if not self.rules.can_double_down(hand):
            return False
        return self._can_cover(self.wager_unit)

    def can_split(self) -> bool:
        hand = self.table.current_hand
        if hand is None or not self.rules.can_split(hand, len(self.table.player_hands)):
            return False
        return self._can_cover(self.wager_unit)

    def can_take_insurance(self) -> bool:
        if not self.table.insurance_pending or self.state.insurance_bet:
            return False
        hand = self.table.player_hands[0]
        if not self.rules.can_take_insurance(self.table.up_card, hand):
            return False
        return self._can_cover(self.state.current_bet // 2)

    def available_actions(self) -> list[PlayerAction]:
        """Actions the player may take right now, in display order."""
        if self.state.phase != GamePhase.PLAYING:
            return []

        if self.table.insurance_pending:
            actions = [PlayerAction.DECLINE_INSURANCE]
            if self.can_take_insurance():
                actions.insert(0, PlayerAction.INSURANCE)
            return actions

        hand = self.table.current_hand
        if hand is None or hand.is_busted:
            return []

        actions = []
        if hand.value < 21 and not self.hand_is_locked(hand):
            actions.append(PlayerAction.HIT)
        actions.append(PlayerAction.STAND)
        if self.can_double_down():
            actions.append(PlayerAction.DOUBLE_DOWN)
        if self.can_split():
            actions.append(PlayerAction.SPLIT)
        return actions

    def validate(self, action: PlayerAction) -> None:
        """
        Check an action can be taken now.

        Raises:
            InvalidPhaseError: Not in the PLAYING phase
            ActionUnavailableError: Not among the available actions
        """
        if self.state.phase != GamePhase.PLAYING:
            raise InvalidPhaseError(
                f"Cannot {action} during {self.state.phase}", phase=self.state.phase.value
            )
        if action not in self.available_actions():
            raise ActionUnavailableError(action.value, f"Cannot {action.value.replace('_', ' ')} now")

    # --- Execution ---

    def execute(self, action: PlayerAction) -> ActionOutcome:
        """
        Validate, snapshot and perform an action.

        Returns:
            The outcome for the active hand
        """
        self.validate(action)
        self.save_action_state(action)
        outcome = self._handlers[action]()
        logger.info("Action %s -> %s", action, outcome.value)
        return outcome

    def save_action_state(self, action: PlayerAction) -> ActionRecord:
        record = ActionRecord.capture(
            action.value,
            self.table,
            self.state.current_bet,
            self.state.insurance_bet,
            self.state.phase,
        )
        self.state.save_game_state(action.value)
        self._records.append(record)
        return record

    def _hit(self) -> ActionOutcome:
        index = self.table.current_hand_index
        self.dealer.deal_to_player(self.table, index)
        hand = self.table.player_hands[index]
        self.events.emit_new(EventType.PLAYER_HIT, hand_index=index, hand_value=hand.value)

        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_index=index, hand_value=hand.value)
            self.events.message("Bust!", Severity.ERROR)
            return ActionOutcome.BUST
        if hand.value == 21:
            self.events.message("21!", Severity.SUCCESS)
            return ActionOutcome.TWENTY_ONE
        return ActionOutcome.CONTINUE

    def _stand(self) -> ActionOutcome:
        index = self.table.current_hand_index
        self.events.emit_new(
            EventType.PLAYER_STAND,
            hand_index=index,
            hand_value=self.table.player_hands[index].value,
        )
        return ActionOutcome.COMPLETE

    def _double_down(self) -> ActionOutcome:
        index = self.table.current_hand_index
        hand = self.table.player_hands[index]
        total = self.state.add_to_bet(self.wager_unit)
        hand.is_doubled = True
        self.events.message(f"Bet doubled to ${total}!", Severity.INFO)

        self.dealer.deal_to_player(self.table, index)
        self.events.emit_new(
            EventType.PLAYER_DOUBLE, hand_index=index, hand_value=hand.value, total_bet=total
        )
        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_index=index, hand_value=hand.value)
            self.events.message("Bust on double down!", Severity.ERROR)
            return ActionOutcome.BUST
        if hand.value == 21:
            self.events.message("21 on double down!", Severity.SUCCESS)
        return ActionOutcome.COMPLETE

    def _split(self) -> ActionOutcome:
        index = self.table.current_hand_index
        original = self.table.player_hands[index]
        unit = self.wager_unit

        moved = original.remove_card()
        original.is_split = True
        self.table.player_hands.insert(index + 1, Hand(cards=[moved], is_split=True))
        self.state.add_to_bet(unit)

        self.dealer.deal_to_player(self.table, index)
        self.dealer.deal_to_player(self.table, index + 1)
        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            hand_index=index,
            hand_values=[hand.value for hand in self.table.player_hands],
            total_bet=self.state.current_bet,
        )
        self.events.message("Hand split! Continue with first hand.", Severity.INFO)

        if self.hand_is_locked(original):
            return ActionOutcome.COMPLETE
        return ActionOutcome.CONTINUE

    def _take_insurance(self) -> ActionOutcome:
        amount = self.state.current_bet // 2
        self.state.set_insurance_bet(amount)
        self.table.insurance_resolved = True
        self.events.emit_new(EventType.INSURANCE_TAKEN, amount=amount)

        # Settled now: whether the dealer has blackjack is already fixed
        if self.table.dealer_hand.is_blackjack:
            payout = self.rules.insurance_payout_amount(amount)
            self.stats.update_bank(payout)
            self.events.emit_new(EventType.INSURANCE_WINS, amount=amount, payout=payout)
            self.events.message(f"Insurance pays ${payout}!", Severity.SUCCESS)
        else:
            self.stats.update_bank(-amount)
            self.events.emit_new(EventType.INSURANCE_LOSES, amount=amount)
            self.events.message("Insurance lost", Severity.ERROR)

        self.clear_history()
        return ActionOutcome.INSURANCE_RESOLVED

    def _decline_insurance(self) -> ActionOutcome:
        self.table.insurance_resolved = True
        self.events.emit_new(EventType.INSURANCE_DECLINED)
        self.clear_history()
        return ActionOutcome.INSURANCE_RESOLVED

    def withdraw_insurance(self) -> None:
        """The offer timed out; treat it as declined."""
        if not self.table.insurance_pending:
            return
        self.table.insurance_resolved = True
        self.events.emit_new(EventType.INSURANCE_WITHDRAWN)
        self.events.message("Insurance offer expired", Severity.WARNING)
        logger.info("Insurance offer withdrawn after timeout")

    # --- Undo ---

    def can_undo(self) -> bool:
        return self.state.can_undo_action() and bool(self._records)

    def undo(self) -> ActionRecord:
        """
        Put the table back as it was before the last action.

        Cards dealt by the undone action go to the discard pile; they have
        been seen, so the count keeps them.

        Raises:
            UndoUnavailableError: Nothing to undo, or not in the PLAYING phase
        """
        if not self.can_undo():
            raise UndoUnavailableError("Cannot undo at this time")

        record = self._records.pop()
        self.state.remove_last_saved_state()

        removed = Counter(self.table.all_cards()) - Counter(record.cards())
        record.restore_into(self.table)
        self.state.restore_bets(record.current_bet, record.insurance_bet)
        self.dealer.shoe.discard(removed.elements())

        self.events.emit_new(
            EventType.ACTION_UNDONE,
            action=record.action,
            hand_index=record.current_hand_index,
        )
        self.events.message(f"Undid {record.action.replace('_', ' ')}", Severity.SUCCESS)
        logger.info("Undid %s", record.action)
        return record

    def clear_history(self) -> None:
        self._records.clear()
        self.state.clear_undo_history()

    @property
    def history(self) -> list[ActionRecord]:
        return list(self._records)
