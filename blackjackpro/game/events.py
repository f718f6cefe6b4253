"""Game events for the event system."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of game events."""

    # Game flow events
    GAME_STARTED = auto()
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    PHASE_CHANGED = auto()
    HAND_ABORTED = auto()

    # Betting events
    BET_CHANGED = auto()
    BETTING_RECOMMENDATION = auto()

    # Card events
    CARD_DEALT = auto()
    HAND_TOTAL_UPDATED = auto()
    SHOE_SHUFFLED = auto()
    COUNT_UPDATED = auto()

    # Player action events
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    STRATEGY_HINT = auto()
    ACTION_UNDONE = auto()

    # Insurance events
    INSURANCE_OFFERED = auto()
    INSURANCE_TAKEN = auto()
    INSURANCE_DECLINED = auto()
    INSURANCE_WITHDRAWN = auto()
    INSURANCE_WINS = auto()
    INSURANCE_LOSES = auto()

    # Dealer events
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Outcome events
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()
    HAND_RESULT = auto()

    # Messages and errors
    MESSAGE = auto()
    ACTION_REJECTED = auto()
    SETTING_CHANGED = auto()

    # Auto-play
    AUTO_PLAY_PAUSED = auto()
    AUTO_PLAY_RESUMED = auto()


class Severity(str, Enum):
    """Tag for message and result text."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events are the primary communication mechanism between the engine
    and the presentation layer.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for game events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self, history_size: int = 500) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: deque[GameEvent] = deque(maxlen=history_size)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record an event and pass it to type-specific, then catch-all handlers."""
        self._event_history.append(event)

        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)

        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        **data: Any,
    ) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    def message(self, text: str, severity: Severity = Severity.INFO, **data: Any) -> GameEvent:
        """Emit a MESSAGE event for the presentation layer."""
        return self.emit_new(EventType.MESSAGE, text=text, severity=severity.value, **data)

    @property
    def history(self) -> list[GameEvent]:
        return list(self._event_history)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        return [e for e in self._event_history if e.event_type == event_type]

    def clear_history(self) -> None:
        self._event_history.clear()
