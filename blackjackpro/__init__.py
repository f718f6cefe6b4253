"""Blackjack practice engine - UI-agnostic game flow, strategy and counting."""

from blackjackpro.cards import Card, Rank, Shoe, Suit
from blackjackpro.errors import (
    ActionUnavailableError,
    BlackjackError,
    InvalidPhaseError,
    InvalidSettingError,
    ShoeExhaustedError,
    UndoUnavailableError,
)
from blackjackpro.hand import Hand

__all__ = [
    "Card",
    "Rank",
    "Shoe",
    "Suit",
    "Hand",
    "BlackjackError",
    "InvalidPhaseError",
    "InvalidSettingError",
    "ActionUnavailableError",
    "UndoUnavailableError",
    "ShoeExhaustedError",
]
