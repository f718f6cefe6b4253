"""Game phases, settings, bets and the bounded undo history."""

import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from transitions import Machine, MachineError

from config import config
from blackjackpro.errors import BlackjackError, InvalidPhaseError
from blackjackpro.game.events import EventEmitter, EventType
from blackjackpro.game.settings import GameSettings

logger = logging.getLogger(__name__)


class GamePhase(str, Enum):
    """
    Phases of a hand.

    Flow: WAITING → DEALING → PLAYING → DEALER → FINISHED → WAITING
    """

    WAITING = "waiting"
    BETTING = "betting"
    DEALING = "dealing"
    PLAYING = "playing"
    DEALER = "dealer"
    FINISHED = "finished"

    def __str__(self) -> str:
        return self.value

    @property
    def display_info(self) -> "PhaseInfo":
        return _PHASE_INFO[self]


@dataclass(frozen=True)
class PhaseInfo:
    display: str
    color: str
    description: str


_PHASE_INFO = {
    GamePhase.WAITING: PhaseInfo("Ready to Play", "info", 'Click "Deal" to start a new hand'),
    GamePhase.BETTING: PhaseInfo("Place Your Bet", "warning", "Choose your bet amount"),
    GamePhase.DEALING: PhaseInfo("Dealing Cards", "info", "Cards are being dealt..."),
    GamePhase.PLAYING: PhaseInfo(
        "Your Turn", "success", "Choose your action: Hit, Stand, Double, or Split"
    ),
    GamePhase.DEALER: PhaseInfo("Dealer's Turn", "warning", "Dealer is playing..."),
    GamePhase.FINISHED: PhaseInfo(
        "Hand Complete", "info", 'Hand finished. Click "Deal" for next hand'
    ),
}


# Valid phase transitions
VALID_TRANSITIONS: dict[GamePhase, tuple[GamePhase, ...]] = {
    GamePhase.WAITING: (GamePhase.DEALING, GamePhase.WAITING, GamePhase.BETTING),
    GamePhase.BETTING: (GamePhase.DEALING, GamePhase.WAITING),
    GamePhase.DEALING: (GamePhase.PLAYING, GamePhase.FINISHED),
    # PLAYING -> PLAYING when moving on to the next split hand
    GamePhase.PLAYING: (GamePhase.DEALER, GamePhase.FINISHED, GamePhase.PLAYING),
    GamePhase.DEALER: (GamePhase.FINISHED,),
    GamePhase.FINISHED: (GamePhase.WAITING, GamePhase.DEALING),
}

# Machine trigger that enters each phase
PHASE_TRIGGERS: dict[GamePhase, str] = {
    GamePhase.WAITING: "wait",
    GamePhase.BETTING: "open_betting",
    GamePhase.DEALING: "deal",
    GamePhase.PLAYING: "play",
    GamePhase.DEALER: "dealer_turn",
    GamePhase.FINISHED: "finish",
}

BETTING_PHASES = (GamePhase.WAITING, GamePhase.BETTING, GamePhase.FINISHED)


def is_valid_transition(from_phase: GamePhase, to_phase: GamePhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, ())


@dataclass(frozen=True)
class SavedState:
    """Phase and bet bookkeeping pushed before each player action."""

    action: str
    phase: GamePhase
    current_bet: int
    insurance_bet: int
    round_number: int
    timestamp: datetime = field(default_factory=datetime.now)


class GameState:
    """
    Phase state machine plus the per-session betting state.

    The phase is driven by a ``transitions`` machine built from
    VALID_TRANSITIONS; ``abort`` is the one forced transition and returns
    to WAITING from anywhere when a hand cannot continue.
    """

    STATES = [p.value for p in GamePhase]

    TRANSITIONS = [
        {"trigger": PHASE_TRIGGERS[dest], "source": source.value, "dest": dest.value}
        for source, dests in VALID_TRANSITIONS.items()
        for dest in dests
    ] + [
        {"trigger": "abort", "source": "*", "dest": GamePhase.WAITING.value},
    ]

    def __init__(
        self,
        settings: GameSettings | None = None,
        events: EventEmitter | None = None,
        undo_history_size: int = config.engine.undo_history_size,
        default_bet: int = config.game.default_bet,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize game state in the WAITING phase.

        Args:
            settings: Player settings (defaults if not provided)
            events: Emitter for phase and setting change events
            undo_history_size: Maximum number of undo snapshots kept
            default_bet: Starting bet before the player changes it
            clock: Monotonic clock in seconds, for hand timing
        """
        self.settings = settings or GameSettings()
        self.events = events
        self._clock = clock
        self._default_bet = default_bet
        self._history: deque[SavedState] = deque(maxlen=undo_history_size)

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=GamePhase.WAITING.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )
        self.reset()

    # --- Phases ---

    @property
    def phase(self) -> GamePhase:
        return GamePhase(self._machine_state)  # type: ignore[attr-defined]

    def can_transition_to(self, phase: GamePhase) -> bool:
        return is_valid_transition(self.phase, phase)

    def set_phase(self, new_phase: GamePhase | str, reason: str = "") -> None:
        """
        Move to a new phase.

        Raises:
            InvalidPhaseError: Unknown phase or a transition not in the table
        """
        try:
            new_phase = GamePhase(new_phase)
        except ValueError:
            raise InvalidPhaseError(f"Invalid game phase: {new_phase}") from None

        old_phase = self.phase
        if not is_valid_transition(old_phase, new_phase):
            raise InvalidPhaseError(
                f"Cannot move from {old_phase} to {new_phase}", phase=old_phase.value
            )
        try:
            getattr(self, PHASE_TRIGGERS[new_phase])()
        except MachineError as exc:
            raise InvalidPhaseError(str(exc.value), phase=old_phase.value) from exc
        self._phase_changed(old_phase, reason)

    def abort_hand(self, reason: str = "") -> None:
        """Force the phase back to WAITING, whatever the current phase."""
        old_phase = self.phase
        self.abort()  # type: ignore[attr-defined]
        self.insurance_bet = 0
        self.clear_undo_history()
        self._phase_changed(old_phase, reason or "hand aborted")

    def _phase_changed(self, old_phase: GamePhase, reason: str) -> None:
        self.previous_phase = old_phase
        logger.info("Phase: %s -> %s %s", old_phase, self.phase, f"({reason})" if reason else "")
        if self.events:
            self.events.emit_new(
                EventType.PHASE_CHANGED,
                old_phase=old_phase.value,
                new_phase=self.phase.value,
                reason=reason,
            )

    # --- Session lifecycle ---

    def reset(self) -> None:
        """Reset for a new session."""
        if self.phase != GamePhase.WAITING:
            self.abort()  # type: ignore[attr-defined]
        self.previous_phase: GamePhase | None = None
        self.base_bet = self._clamp(self._default_bet)
        self.current_bet = self.base_bet
        self.insurance_bet = 0
        self.game_id = uuid.uuid4().hex
        self.round_number = 0
        self.last_action: str | None = None
        self.hand_started_at: float | None = None
        self._history.clear()
        logger.info("Game state reset for new session %s", self.game_id)

    def start_new_hand(self) -> None:
        """Prepare bookkeeping for the next hand; the wager starts at the base bet."""
        self.hand_started_at = self._clock()
        self.round_number += 1
        self.current_bet = self.base_bet
        self.insurance_bet = 0
        self.clear_undo_history()
        logger.info("Starting hand #%d", self.round_number)

    # --- Settings ---

    def update_setting(self, key: str, value: Any) -> Any:
        """
        Swap in settings with one value changed.

        Returns:
            The previous value

        Raises:
            InvalidSettingError: Unknown key or invalid value
        """
        name = GameSettings.resolve_key(key)
        old_value = getattr(self.settings, name)
        self.settings = self.settings.updated(name, value)
        if name in ("minimum_bet", "maximum_bet"):
            self.base_bet = self._clamp(self.base_bet)
            if self.phase in BETTING_PHASES:
                self.current_bet = self.base_bet

        logger.info("Setting updated: %s = %r (was %r)", name, value, old_value)
        if self.events:
            self.events.emit_new(
                EventType.SETTING_CHANGED, key=name, value=value, old_value=old_value
            )
        return old_value

    def get_setting(self, key: str) -> Any:
        return self.settings.get(key)

    def replace_settings(self, settings: GameSettings) -> None:
        """Swap in a whole settings object between hands, re-clamping the bet."""
        if self.phase not in BETTING_PHASES:
            raise InvalidPhaseError(
                f"Cannot replace settings during {self.phase}", phase=self.phase.value
            )
        self.settings = settings
        self.base_bet = self._clamp(self.base_bet)
        self.current_bet = self.base_bet
        logger.info("Settings replaced: %s", settings.to_dict())

    # --- Bets ---

    def _clamp(self, amount: int) -> int:
        return max(self.settings.minimum_bet, min(int(amount), self.settings.maximum_bet))

    def set_bet_amount(self, amount: int) -> int:
        """
        Set the bet for the next hand, clamped to the table limits.

        Returns:
            The clamped amount

        Raises:
            InvalidPhaseError: A hand is in progress
        """
        if self.phase not in BETTING_PHASES:
            raise InvalidPhaseError(
                f"Cannot change the bet during {self.phase}", phase=self.phase.value
            )
        clamped = self._clamp(amount)
        self.base_bet = clamped
        self.current_bet = clamped
        logger.info("Bet set to $%d", clamped)
        return clamped

    def add_to_bet(self, amount: int) -> int:
        """Grow the in-hand wager after a double or split; table limits do not apply."""
        self.current_bet += amount
        return self.current_bet

    def set_insurance_bet(self, amount: int) -> None:
        self.insurance_bet = amount
        logger.info("Insurance bet: $%d", amount)

    def restore_bets(self, current_bet: int, insurance_bet: int) -> None:
        self.current_bet = current_bet
        self.insurance_bet = insurance_bet

    def is_valid_bet(self, amount: int) -> bool:
        return 0 < amount and self.settings.minimum_bet <= amount <= self.settings.maximum_bet

    def betting_constraints(self) -> dict[str, Any]:
        return {
            "minimum": self.settings.minimum_bet,
            "maximum": self.settings.maximum_bet,
            "current": self.current_bet,
            "can_increase": self.current_bet < self.settings.maximum_bet,
            "can_decrease": self.current_bet > self.settings.minimum_bet,
        }

    # --- Undo history ---

    def save_game_state(self, action: str) -> SavedState:
        """Push a snapshot before a player action; the oldest drops off when full."""
        saved = SavedState(
            action=action,
            phase=self.phase,
            current_bet=self.current_bet,
            insurance_bet=self.insurance_bet,
            round_number=self.round_number,
        )
        self._history.append(saved)
        self.last_action = action
        logger.debug("State saved for undo: %s (%d states)", action, len(self._history))
        return saved

    @property
    def last_saved_state(self) -> SavedState | None:
        return self._history[-1] if self._history else None

    def remove_last_saved_state(self) -> SavedState | None:
        if not self._history:
            return None
        return self._history.pop()

    def can_undo_action(self) -> bool:
        return self.phase == GamePhase.PLAYING and bool(self._history)

    def clear_undo_history(self) -> None:
        self._history.clear()
        self.last_action = None
        logger.debug("Undo history cleared")

    @property
    def undo_depth(self) -> int:
        return len(self._history)

    @property
    def undo_limit(self) -> int | None:
        return self._history.maxlen

    # --- Reporting ---

    def hand_duration(self) -> float:
        """Seconds since the current hand started."""
        if self.hand_started_at is None:
            return 0.0
        return self._clock() - self.hand_started_at

    def formatted_hand_duration(self) -> str:
        seconds = int(self.hand_duration())
        minutes = seconds // 60
        if minutes > 0:
            return f"{minutes}:{seconds % 60:02d}"
        return f"{seconds}s"

    def session_data(self) -> dict[str, Any]:
        return {
            "game_id": self.game_id,
            "round_number": self.round_number,
            "current_phase": self.phase.value,
            "previous_phase": self.previous_phase.value if self.previous_phase else None,
            "base_bet": self.base_bet,
            "current_bet": self.current_bet,
            "insurance_bet": self.insurance_bet,
            "can_undo": self.can_undo_action(),
            "last_action": self.last_action,
            "settings": self.settings.to_dict(),
        }

    def state_summary(self) -> dict[str, Any]:
        info = self.phase.display_info
        return {
            "phase": {"display": info.display, "color": info.color, "description": info.description},
            "timing": {
                "hand_duration": self.formatted_hand_duration(),
                "round_number": self.round_number,
            },
            "betting": {
                "current_bet": self.current_bet,
                "insurance_bet": self.insurance_bet,
                "min_bet": self.settings.minimum_bet,
                "max_bet": self.settings.maximum_bet,
            },
            "actions": {"can_undo": self.can_undo_action(), "last_action": self.last_action},
            "settings": self.settings.to_dict(),
        }

    def export_state(self) -> dict[str, Any]:
        return {
            "session_data": self.session_data(),
            "timestamp": datetime.now().isoformat(),
        }

    def import_state(self, data: dict[str, Any]) -> bool:
        """
        Restore session bookkeeping written by export_state.

        Only allowed between hands; the phase itself is never restored.

        Returns:
            True on success, False if the data was rejected
        """
        if self.phase not in BETTING_PHASES:
            logger.warning("Refusing to import game state during %s", self.phase)
            return False
        try:
            session = data["session_data"]
            settings = GameSettings(**session.get("settings", self.settings.to_dict()))
            game_id = str(session["game_id"])
            round_number = int(session["round_number"])
            base_bet = int(session.get("base_bet", session["current_bet"]))
        except (BlackjackError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Failed to import game state: %s", exc)
            return False

        self.settings = settings
        self.game_id = game_id
        self.round_number = round_number
        self.base_bet = self._clamp(base_bet)
        self.current_bet = self.base_bet
        self.insurance_bet = 0
        self.clear_undo_history()
        logger.info("Game state imported for session %s", game_id)
        return True
