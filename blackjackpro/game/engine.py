"""Blackjack game engine: the full hand lifecycle behind a command interface."""

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from random import Random
from typing import Any, Callable

from pydantic import ValidationError

from config import EngineConfig, config
from blackjackpro.cards import Shoe
from blackjackpro.counting.counter import CardCounter, RiskLevel
from blackjackpro.errors import (
    ActionUnavailableError,
    BlackjackError,
    InvalidPhaseError,
    ShoeExhaustedError,
)
from blackjackpro.game.actions import ActionHandler, ActionOutcome, PlayerAction
from blackjackpro.game.dealer import CardDealer
from blackjackpro.game.events import EventEmitter, EventHandler, EventType, Severity
from blackjackpro.game.settings import GameSettings
from blackjackpro.game.state import BETTING_PHASES, GamePhase, GameState
from blackjackpro.game.table import HIDDEN_CARD, Table
from blackjackpro.hand import Hand
from blackjackpro.schemas import (
    AlternativeSnapshot,
    BettingRecommendationSnapshot,
    CountingSnapshot,
    HandSnapshot,
    PersistedState,
    SettingsModel,
    StrategyHintSnapshot,
    TableSnapshot,
)
from blackjackpro.statistics.session import SessionStats
from blackjackpro.strategy.advisor import StrategyAdvisor, StrategyHint
from blackjackpro.strategy.basic import Action
from blackjackpro.strategy.rules import HandResult, RuleSet

logger = logging.getLogger(__name__)

_RESULT_MESSAGES = {
    HandResult.BLACKJACK: ("Blackjack! You win!", Severity.SUCCESS),
    HandResult.WIN: ("Win!", Severity.SUCCESS),
    HandResult.PUSH: ("Push", Severity.INFO),
    HandResult.LOSE: ("Lose", Severity.ERROR),
}

_FROM_STRATEGY = {
    Action.HIT: PlayerAction.HIT,
    Action.STAND: PlayerAction.STAND,
    Action.DOUBLE: PlayerAction.DOUBLE_DOWN,
    Action.SPLIT: PlayerAction.SPLIT,
}


@dataclass(frozen=True)
class ActionResult:
    """
    What happened to a command.

    Rejected commands leave the game untouched and carry the reason and the
    error type; accepted ones carry the action outcome or a returned value.
    """

    accepted: bool
    command: str
    phase: GamePhase
    outcome: str | None = None
    value: Any = None
    reason: str = ""
    error: str | None = None

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class HandOutcome:
    hand_index: int
    result: HandResult
    bet: int
    payout: int

    @property
    def net(self) -> int:
        return self.payout - self.bet


@dataclass(frozen=True)
class RoundSettlement:
    """Payouts for every player hand in a finished round."""

    outcomes: tuple[HandOutcome, ...]
    total_wagered: int
    total_payout: int
    dealer_value: int
    reason: str

    @property
    def net(self) -> int:
        return self.total_payout - self.total_wagered

    def count(self, *results: HandResult) -> int:
        return sum(1 for outcome in self.outcomes if outcome.result in results)


class BlackjackGame:
    """
    Blackjack game engine.

    Owns the shoe, the table and the phase machine, and runs one command at
    a time to completion. The engine is UI-agnostic: the presentation layer
    sends commands and renders events and snapshots.
    """

    def __init__(
        self,
        settings: GameSettings | None = None,
        rules: RuleSet | None = None,
        stats: SessionStats | None = None,
        rng: Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        engine_config: EngineConfig = config.engine,
        initial_bank: Decimal = config.game.initial_bankroll,
    ) -> None:
        """
        Initialize a new blackjack game.

        Args:
            settings: Player settings (uses defaults if not provided)
            rules: Table rules; deck count and bet limits follow the settings
            stats: Session statistics holding the bank
            rng: Random number generator for reproducible shoes
            clock: Monotonic clock in seconds (insurance timeout, hand timing)
            engine_config: Engine limits and pacing
            initial_bank: Starting bank for a new session
        """
        settings = settings or GameSettings()
        self._rng = rng or Random()
        self._clock = clock
        self._initial_bank = Decimal(initial_bank)
        self._insurance_timeout = engine_config.insurance_offer_timeout

        self.events = EventEmitter(history_size=engine_config.event_history_size)
        self.state = GameState(
            settings,
            self.events,
            undo_history_size=engine_config.undo_history_size,
            clock=clock,
        )
        self.rules = self._rules_for(rules or RuleSet(), settings)
        self.shoe = Shoe(self.rules.num_decks, self.rules.penetration, self._rng)
        self.shoe.shuffle()

        self.counter = CardCounter(
            total_decks=self.rules.num_decks, history_size=engine_config.count_history_size
        )
        self.counter.set_enabled(settings.card_counting_mode)
        self.advisor = StrategyAdvisor(history_size=engine_config.decision_history_size)
        self.stats = stats or SessionStats(self._initial_bank, engine_config.hand_history_size)

        self.table = Table()
        self.dealer = CardDealer(
            self.shoe, self.counter, self.state, self.events, engine_config.card_delay_ms
        )
        self.actions = ActionHandler(
            self.state, self.rules, self.dealer, self.stats, self.table, self.events
        )

        self.last_settlement: RoundSettlement | None = None
        self._last_hint: StrategyHint | None = None
        self._busy = False
        self._paused = False

    @staticmethod
    def _rules_for(rules: RuleSet, settings: GameSettings) -> RuleSet:
        return replace(
            rules,
            num_decks=settings.deck_count,
            min_bet=settings.minimum_bet,
            max_bet=settings.maximum_bet,
        )

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def settings(self) -> GameSettings:
        return self.state.settings

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    # --- Command boundary ---

    def _run(self, command: str, operation: Callable[[], Any]) -> ActionResult:
        """
        Run one command to completion.

        Engine errors become a rejected ActionResult. Shoe exhaustion aborts
        the hand and is re-raised.
        """
        if self._busy:
            return self._reject(
                command,
                InvalidPhaseError(
                    f"Cannot {command} while another command is running",
                    phase=self.phase.value,
                ),
            )

        self._busy = True
        try:
            self._expire_insurance_if_due()
            value = operation()
        except ShoeExhaustedError as exc:
            self._abort_hand(exc)
            raise
        except BlackjackError as exc:
            return self._reject(command, exc)
        finally:
            self._busy = False

        outcome = value.value if isinstance(value, ActionOutcome) else None
        return ActionResult(
            accepted=True,
            command=command,
            phase=self.phase,
            outcome=outcome,
            value=None if outcome else value,
        )

    def _reject(self, command: str, exc: BlackjackError) -> ActionResult:
        logger.warning("Rejected %s: %s", command, exc)
        self.events.emit_new(
            EventType.ACTION_REJECTED,
            command=command,
            reason=str(exc),
            error=type(exc).__name__,
            severity=Severity.ERROR.value,
        )
        self.events.message(str(exc), Severity.ERROR)
        return ActionResult(
            accepted=False,
            command=command,
            phase=self.phase,
            reason=str(exc),
            error=type(exc).__name__,
        )

    def _abort_hand(self, exc: ShoeExhaustedError) -> None:
        logger.error("Shoe exhausted, aborting hand #%d: %s", self.state.round_number, exc)
        self.shoe.discard(self.table.all_cards())
        self.actions.clear_history()
        self.table.reset()
        self._last_hint = None
        self.state.abort_hand("shoe exhausted")
        self.events.emit_new(EventType.HAND_ABORTED, reason=str(exc))
        self.events.message("The shoe ran out of cards. Hand aborted.", Severity.ERROR)

    # --- Game lifecycle ---

    def start_new_game(self) -> ActionResult:
        """Start a new session: fresh bank, fresh shoe, cleared analytics."""
        return self._run("start_new_game", self._start_new_game)

    def _start_new_game(self) -> None:
        self.state.reset()
        self.stats.start_new_session(self._initial_bank)
        self.shoe.reset()
        self.dealer.reshuffle("new game")
        self.counter.reset_session()
        self.advisor.reset()
        self.table.reset()
        self.last_settlement = None
        self._last_hint = None
        self.events.emit_new(EventType.GAME_STARTED, game_id=self.state.game_id)
        self.events.message("New game started. Good luck!", Severity.INFO)

    def open_betting(self) -> ActionResult:
        """Move from WAITING to the BETTING phase."""
        return self._run(
            "open_betting", lambda: self.state.set_phase(GamePhase.BETTING, "Place your bet")
        )

    def set_bet_amount(self, amount: int) -> ActionResult:
        """Set the bet for the next hand; the result value is the clamped amount."""
        return self._run("set_bet_amount", lambda: self._set_bet_amount(amount))

    def _set_bet_amount(self, amount: int) -> int:
        clamped = self.state.set_bet_amount(amount)
        self.events.emit_new(EventType.BET_CHANGED, requested=amount, amount=clamped)
        return clamped

    def update_setting(self, key: str, value: Any) -> ActionResult:
        """Change one setting; the result value is the previous value."""
        return self._run("update_setting", lambda: self._update_setting(key, value))

    def _update_setting(self, key: str, value: Any) -> Any:
        name = GameSettings.resolve_key(key)
        if name == "deck_count" and self.phase not in BETTING_PHASES:
            raise InvalidPhaseError("Deck count can only change between hands", self.phase.value)
        old_value = self.state.update_setting(name, value)
        self._sync_settings()
        if name == "show_basic_strategy_hints":
            self._issue_hint()
        return old_value

    def _sync_settings(self) -> None:
        """Bring rules, shoe and counter in line with the current settings."""
        settings = self.settings
        self.rules = self._rules_for(self.rules, settings)
        self.actions.rules = self.rules

        if self.shoe.num_decks != settings.deck_count:
            self.shoe = Shoe(settings.deck_count, self.rules.penetration, self._rng)
            self.dealer.shoe = self.shoe
            self.counter.set_total_decks(settings.deck_count)
            self.dealer.reshuffle("deck count changed")

        if self.counter.enabled != settings.card_counting_mode:
            self.counter.set_enabled(settings.card_counting_mode)

    # --- Dealing ---

    def deal_new_hand(self) -> ActionResult:
        """Deal a new hand at the current bet."""
        return self._run("deal_new_hand", self._deal_new_hand)

    def _deal_new_hand(self) -> None:
        if self.phase not in BETTING_PHASES:
            raise InvalidPhaseError(
                f"Cannot deal during {self.phase}", phase=self.phase.value
            )
        if not self.stats.can_afford(self.state.base_bet):
            raise ActionUnavailableError("deal", "Insufficient funds for this bet")

        if self.shoe.needs_reshuffle:
            self.dealer.reshuffle()

        self.state.start_new_hand()
        self.table.reset()
        self.last_settlement = None
        self._last_hint = None
        self.state.set_phase(GamePhase.DEALING, "Cards being dealt")
        self.events.emit_new(
            EventType.ROUND_STARTED,
            round_number=self.state.round_number,
            bet=self.state.current_bet,
        )

        # Player, dealer hole card (face down), player, dealer up-card
        self.dealer.deal_to_player(self.table, 0)
        self.dealer.deal_to_dealer(self.table, face_up=False)
        self.dealer.deal_to_player(self.table, 0)
        self.dealer.deal_to_dealer(self.table, face_up=True)

        self._check_immediate_results()

    def _check_immediate_results(self) -> None:
        player_natural = self.rules.is_natural(self.table.player_hands[0])
        up_card = self.table.up_card

        if up_card is not None and up_card.is_ace and not player_natural and self.rules.allow_insurance:
            self._offer_insurance()
            return
        self._resolve_naturals_or_play()

    def _offer_insurance(self) -> None:
        self.table.insurance_offered_at = self._clock()
        self.state.set_phase(GamePhase.PLAYING, "Insurance offered")
        amount = self.state.current_bet // 2
        self.events.emit_new(
            EventType.INSURANCE_OFFERED, amount=amount, timeout=self._insurance_timeout
        )
        self.events.message(f"Dealer shows an Ace. Insurance costs ${amount}.", Severity.WARNING)

    def _expire_insurance_if_due(self) -> None:
        offered = self.table.insurance_offered_at
        if not self.table.insurance_pending or offered is None:
            return
        if self._clock() - offered < self._insurance_timeout:
            return
        self.actions.withdraw_insurance()
        self._resolve_naturals_or_play()

    def expire_insurance_offer(self) -> ActionResult:
        """Let a host timer withdraw an insurance offer that has run out of time."""
        return self._run("expire_insurance_offer", lambda: None)

    def _resolve_naturals_or_play(self) -> None:
        player_natural = self.rules.is_natural(self.table.player_hands[0])
        dealer_natural = self.table.dealer_hand.is_blackjack

        if not (player_natural or dealer_natural):
            self.table.current_hand_index = 0
            self._continue_play()
            return

        self.dealer.reveal_hole_card(self.table)
        if dealer_natural:
            self.events.emit_new(EventType.DEALER_BLACKJACK)
        if player_natural:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)

        if player_natural and dealer_natural:
            reason = "Both have blackjack - Push!"
        elif player_natural:
            reason = "Blackjack! You win!"
        else:
            reason = "Dealer has blackjack. You lose."
        self._settle(reason)

    # --- Player turn ---

    def available_actions(self) -> list[PlayerAction]:
        return self.actions.available_actions()

    def perform(self, action: PlayerAction | str) -> ActionResult:
        """Execute a player action."""
        action = PlayerAction(action)
        return self._run(action.value, lambda: self._perform(action))

    def hit(self) -> ActionResult:
        return self.perform(PlayerAction.HIT)

    def stand(self) -> ActionResult:
        return self.perform(PlayerAction.STAND)

    def double_down(self) -> ActionResult:
        return self.perform(PlayerAction.DOUBLE_DOWN)

    def split(self) -> ActionResult:
        return self.perform(PlayerAction.SPLIT)

    def take_insurance(self) -> ActionResult:
        return self.perform(PlayerAction.INSURANCE)

    def decline_insurance(self) -> ActionResult:
        return self.perform(PlayerAction.DECLINE_INSURANCE)

    def _perform(self, action: PlayerAction) -> ActionOutcome:
        self.actions.validate(action)

        hint = self._last_hint
        played = action.strategy_action
        if hint is not None and played is not None:
            self.advisor.record_decision(hint, played)
        self._last_hint = None

        outcome = self.actions.execute(action)
        if outcome == ActionOutcome.INSURANCE_RESOLVED:
            self._resolve_naturals_or_play()
        elif outcome.ends_hand:
            self._advance_hand()
        else:
            self._issue_hint()
        return outcome

    def _advance_hand(self) -> None:
        self.table.current_hand_index += 1
        self._continue_play()

    def _continue_play(self) -> None:
        """Resume the player turn on the active hand, or hand over to the dealer."""
        while True:
            hand = self.table.current_hand
            if hand is None:
                self._play_dealer()
                return
            if not self.actions.hand_is_locked(hand):
                break
            self.table.current_hand_index += 1

        index = self.table.current_hand_index
        reason = "Player's turn" if index == 0 else f"Playing hand {index + 1}"
        self.state.set_phase(GamePhase.PLAYING, reason)
        self._issue_hint()

    def undo_last_action(self) -> ActionResult:
        """Take back the last player action of this hand."""
        return self._run("undo", self._undo)

    def _undo(self) -> str:
        record = self.actions.undo()
        self._issue_hint()
        return record.action

    # --- Dealer turn and settlement ---

    def _play_dealer(self) -> None:
        if self.table.all_busted:
            # Nothing left to beat; the hole card is still shown
            self.dealer.reveal_hole_card(self.table)
            self._settle("All hands busted")
            return

        self.state.set_phase(GamePhase.DEALER, "Dealer's turn")
        self.dealer.reveal_hole_card(self.table)
        dealer_hand = self.table.dealer_hand

        while self.rules.dealer_should_hit(dealer_hand):
            self.dealer.deal_to_dealer(self.table)
            self.events.emit_new(EventType.DEALER_HITS, hand_value=dealer_hand.value)

        if dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=dealer_hand.value)
        self._settle("Round complete")

    def _hand_bet(self, hand: Hand) -> int:
        return self.actions.wager_unit * (2 if hand.is_doubled else 1)

    def _settle(self, reason: str) -> RoundSettlement:
        """Pay every hand, apply the net to the bank and finish the round."""
        dealer_hand = self.table.dealer_hand
        outcomes = []
        for index, hand in enumerate(self.table.player_hands):
            bet = self._hand_bet(hand)
            result = self.rules.determine_result(hand, dealer_hand)
            payout = self.rules.payout(result, bet)
            outcomes.append(HandOutcome(index, result, bet, payout))

            text, severity = _RESULT_MESSAGES[result]
            self.events.emit_new(
                EventType.HAND_RESULT,
                hand_index=index,
                result=result.value,
                bet=bet,
                payout=payout,
                text=text,
                severity=severity.value,
            )

        settlement = RoundSettlement(
            outcomes=tuple(outcomes),
            total_wagered=sum(o.bet for o in outcomes),
            total_payout=sum(o.payout for o in outcomes),
            dealer_value=dealer_hand.value,
            reason=reason,
        )
        self.stats.update_bank(settlement.net)
        self.stats.record_hand(
            self.table.player_hands,
            dealer_hand,
            wagered=settlement.total_wagered,
            payout=settlement.total_payout,
            won=settlement.count(HandResult.WIN, HandResult.BLACKJACK),
            lost=settlement.count(HandResult.LOSE),
            pushed=settlement.count(HandResult.PUSH),
            blackjacks=settlement.count(HandResult.BLACKJACK),
        )
        if self.counter.enabled:
            self.counter.record_hand()
            self.counter.record_bet(settlement.total_wagered)

        self.actions.clear_history()
        self.shoe.discard(self.table.all_cards())
        self.last_settlement = settlement
        self._last_hint = None
        self.state.set_phase(GamePhase.FINISHED, reason)

        logger.info(
            "Round %d settled: wagered $%d, returned $%d, net %+d",
            self.state.round_number,
            settlement.total_wagered,
            settlement.total_payout,
            settlement.net,
        )
        self.events.emit_new(
            EventType.ROUND_ENDED,
            net=settlement.net,
            total_wagered=settlement.total_wagered,
            total_payout=settlement.total_payout,
            bank=str(self.stats.bank_amount),
            reason=reason,
        )
        if settlement.net > 0:
            self.events.message(reason, Severity.SUCCESS, net=settlement.net)
        elif settlement.net < 0:
            self.events.message(reason, Severity.ERROR, net=settlement.net)
        else:
            self.events.message(reason, Severity.INFO, net=0)
        return settlement

    # --- Strategy hints ---

    def _issue_hint(self) -> None:
        self._last_hint = None
        if not self.settings.show_basic_strategy_hints:
            return
        if self.phase != GamePhase.PLAYING or self.table.insurance_pending:
            return
        hand = self.table.current_hand
        up_card = self.table.up_card
        if hand is None or up_card is None:
            return

        hint = self.advisor.hint(
            hand,
            up_card,
            can_double=self.actions.can_double_down(),
            can_split=self.actions.can_split(),
        )
        self._last_hint = hint
        data = self._hint_snapshot(hint).model_dump(mode="json")
        if self.counter.enabled:
            deviation = self.counter.index_play(hand, up_card)
            if deviation.has_deviation:
                data["deviation"] = {"action": deviation.action, "reason": deviation.reason}
        self.events.emit_new(EventType.STRATEGY_HINT, **data)

    @staticmethod
    def _hint_snapshot(hint: StrategyHint) -> StrategyHintSnapshot:
        return StrategyHintSnapshot(
            action=hint.action.value,
            explanation=hint.explanation,
            confidence=hint.confidence,
            hand_type=hint.hand_type,
            player_value=hint.player_value,
            dealer_value=hint.dealer_value,
            alternatives=[
                AlternativeSnapshot(
                    action=alt.action.value,
                    description=alt.description,
                    risk=alt.risk,
                    situation=alt.situation,
                )
                for alt in hint.alternatives
            ],
        )

    def current_hint(self) -> StrategyHintSnapshot | None:
        """The hint shown for the active hand, if hints are on."""
        if self._last_hint is None:
            return None
        return self._hint_snapshot(self._last_hint)

    # --- Auto-play ---

    def auto_play_action(self) -> PlayerAction | None:
        """The basic strategy play for the active hand, limited to what is available."""
        available = self.available_actions()
        if not available:
            return None
        if self.table.insurance_pending:
            return PlayerAction.DECLINE_INSURANCE

        hand = self.table.current_hand
        up_card = self.table.up_card
        if hand is None or up_card is None:
            return None
        recommended = self.advisor.recommend(
            hand,
            up_card,
            can_double=PlayerAction.DOUBLE_DOWN in available,
            can_split=PlayerAction.SPLIT in available,
        )
        action = _FROM_STRATEGY.get(recommended, PlayerAction.HIT)
        if action in available:
            return action
        return PlayerAction.HIT if PlayerAction.HIT in available else PlayerAction.STAND

    def run_auto_play(self, max_steps: int = 50) -> list[ActionResult]:
        """
        Play by basic strategy one action at a time.

        Stops when the hand ends, auto-play is switched off, the game is
        paused, or an action is rejected.
        """
        results: list[ActionResult] = []
        while len(results) < max_steps:
            if self._paused or not self.settings.auto_play:
                break
            action = self.auto_play_action()
            if action is None:
                break
            result = self.perform(action)
            results.append(result)
            if not result.accepted:
                break
        return results

    def pause(self) -> None:
        """Stop auto-play before its next step."""
        self._paused = True
        self.events.emit_new(EventType.AUTO_PLAY_PAUSED)
        logger.info("Game flow paused")

    def resume(self) -> list[ActionResult]:
        """Resume auto-play from where it stopped."""
        self._paused = False
        self.events.emit_new(EventType.AUTO_PLAY_RESUMED)
        logger.info("Game flow resumed")
        return self.run_auto_play()

    @property
    def is_paused(self) -> bool:
        return self._paused

    # --- Snapshots ---

    def _hand_snapshot(self, hand: Hand) -> HandSnapshot:
        return HandSnapshot(
            cards=[str(card) for card in hand.cards],
            value=hand.value,
            display_value=hand.display_value,
            is_soft=hand.is_soft,
            is_blackjack=hand.is_blackjack,
            is_busted=hand.is_busted,
            is_doubled=hand.is_doubled,
            is_split=hand.is_split,
            bet=self._hand_bet(hand),
        )

    def _dealer_snapshot(self) -> HandSnapshot:
        dealer_hand = self.table.dealer_hand
        if self.table.hole_revealed or not dealer_hand.cards:
            return HandSnapshot(
                cards=[str(card) for card in dealer_hand.cards],
                value=dealer_hand.value if dealer_hand.cards else None,
                display_value=dealer_hand.display_value,
                is_soft=dealer_hand.is_soft,
                is_blackjack=dealer_hand.is_blackjack,
                is_busted=dealer_hand.is_busted,
            )
        visible = self.table.dealer_visible_value()
        return HandSnapshot(
            cards=[HIDDEN_CARD] + [str(card) for card in dealer_hand.cards[1:]],
            value=visible,
            display_value=str(visible) if visible is not None else "",
            is_soft=False,
            is_blackjack=False,
            is_busted=False,
        )

    def table_snapshot(self) -> TableSnapshot:
        return TableSnapshot(
            phase=self.phase.value,
            player_hands=[self._hand_snapshot(hand) for hand in self.table.player_hands],
            current_hand_index=self.table.current_hand_index,
            dealer_hand=self._dealer_snapshot(),
            current_bet=self.state.current_bet,
            insurance_bet=self.state.insurance_bet,
            insurance_pending=self.table.insurance_pending,
            available_actions=[action.value for action in self.available_actions()],
            can_undo=self.actions.can_undo(),
            bank_amount=self.stats.bank_amount,
            round_number=self.state.round_number,
        )

    def counting_snapshot(self) -> CountingSnapshot:
        state = self.counter.state()
        return CountingSnapshot(
            running=state.running_count,
            true=round(state.true_count, 2),
            decks_remaining=round(state.decks_remaining, 2),
            penetration=round(state.penetration, 1),
            side_counts=state.side_counts,
        )

    def betting_recommendation(
        self, risk_level: RiskLevel = "moderate"
    ) -> BettingRecommendationSnapshot:
        recommendation = self.counter.betting_recommendation(
            base_bet=self.state.base_bet,
            bankroll=float(self.stats.bank_amount),
            risk_level=risk_level,
        )
        snapshot = BettingRecommendationSnapshot.model_validate(recommendation)
        self.events.emit_new(EventType.BETTING_RECOMMENDATION, **snapshot.model_dump())
        return snapshot

    def flow_stats(self) -> dict[str, Any]:
        return {
            "current_phase": self.phase.value,
            "current_hand_index": self.table.current_hand_index,
            "total_hands": len(self.table.player_hands),
            "is_busy": self._busy,
            "is_paused": self._paused,
            "auto_play_enabled": self.settings.auto_play,
            "hand_duration": self.state.hand_duration(),
            "undo_depth": self.state.undo_depth,
        }

    def validate_flow_state(self) -> dict[str, Any]:
        """Check the table and shoe for states that should never happen."""
        issues = []
        if not self.table.player_hands:
            issues.append("No player hands initialized")
        if self.phase == GamePhase.PLAYING:
            if self.table.current_hand is None:
                issues.append("Invalid current hand index")
            if len(self.table.dealer_hand.cards) < 2:
                issues.append("Dealer hand incomplete")

        accounted = self.shoe.cards_remaining + self.shoe.discard_count + self.shoe.in_play_count
        if accounted != self.shoe.total_cards:
            issues.append(f"Shoe holds {accounted} of {self.shoe.total_cards} cards")
        if self.phase in BETTING_PHASES and self.shoe.in_play_count:
            issues.append("Cards still in play between hands")
        return {"is_valid": not issues, "issues": issues}

    # --- Persistence ---

    def export_state(self) -> dict[str, Any]:
        """Plain, JSON-ready snapshot for the persistence layer."""
        persisted = PersistedState(
            settings=SettingsModel(**self.settings.to_dict()),
            game_id=self.state.game_id,
            last_updated=datetime.now(),
            session_stats=self.stats.export_data(),
            strategy_accuracy=self.advisor.export_data(),
            counting_accuracy=self.counter.export_data(),
        )
        return persisted.model_dump(mode="json", by_alias=True)

    def import_state(self, data: dict[str, Any]) -> bool:
        """
        Restore settings and analytics from export_state output.

        Returns:
            True on success, False if the data was rejected or a hand is in play
        """
        if self._busy or self.phase not in BETTING_PHASES:
            logger.warning("Refusing to import state during %s", self.phase)
            return False
        try:
            persisted = PersistedState.model_validate(data)
            settings = GameSettings(**persisted.settings.model_dump())
        except (ValidationError, BlackjackError) as exc:
            logger.warning("Rejected saved state: %s", exc)
            return False

        # Load into scratch objects first; the live ones change only if all three parse
        try:
            SessionStats().import_data(persisted.session_stats)
            StrategyAdvisor().import_data(persisted.strategy_accuracy)
            CardCounter().import_data(persisted.counting_accuracy)
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            logger.warning("Rejected saved analytics: %s", exc)
            return False

        self.stats.import_data(persisted.session_stats)
        self.advisor.import_data(persisted.strategy_accuracy)
        self.counter.import_data(persisted.counting_accuracy)
        self.state.replace_settings(settings)
        self.state.game_id = persisted.game_id
        self._sync_settings()
        logger.info("Imported saved state for game %s", persisted.game_id)
        return True
