"""Game engine and state management."""

from blackjackpro.game.actions import ActionOutcome, PlayerAction
from blackjackpro.game.engine import ActionResult, BlackjackGame, RoundSettlement
from blackjackpro.game.events import EventType, GameEvent, Severity
from blackjackpro.game.settings import GameSettings
from blackjackpro.game.state import GamePhase, GameState

__all__ = [
    "ActionOutcome",
    "ActionResult",
    "BlackjackGame",
    "EventType",
    "GameEvent",
    "GamePhase",
    "GameSettings",
    "GameState",
    "PlayerAction",
    "RoundSettlement",
    "Severity",
]
