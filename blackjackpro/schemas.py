"""Pydantic schemas for snapshots handed to the presentation and persistence layers."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Settings and persistence
class SettingsModel(CamelModel):
    """Player settings as stored by the persistence layer."""

    deck_count: int = Field(default=6, ge=1, le=8)
    show_basic_strategy_hints: StrictBool = True
    card_counting_mode: StrictBool = False
    minimum_bet: int = Field(default=5, ge=1)
    maximum_bet: int = Field(default=500, ge=1)
    game_speed: Literal["instant", "fast", "normal", "slow"] = "normal"
    auto_play: StrictBool = False
    sound_effects: StrictBool = False
    animations_enabled: StrictBool = True

    @model_validator(mode="after")
    def check_bet_limits(self) -> "SettingsModel":
        if self.maximum_bet < self.minimum_bet:
            raise ValueError("maximumBet must not be below minimumBet")
        return self


class PersistedState(CamelModel):
    """The saved-game blob: settings plus separately keyed analytics."""

    settings: SettingsModel
    game_id: str
    last_updated: datetime
    session_stats: dict[str, Any] = Field(default_factory=dict)
    strategy_accuracy: dict[str, Any] = Field(default_factory=dict)
    counting_accuracy: dict[str, Any] = Field(default_factory=dict)


# Table snapshots
class HandSnapshot(CamelModel):
    cards: list[str]
    value: int | None
    display_value: str
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_doubled: bool = False
    is_split: bool = False
    bet: int = 0


class TableSnapshot(CamelModel):
    """Everything needed to draw the table."""

    phase: str
    player_hands: list[HandSnapshot]
    current_hand_index: int
    dealer_hand: HandSnapshot
    current_bet: int
    insurance_bet: int
    insurance_pending: bool
    available_actions: list[str]
    can_undo: bool
    bank_amount: Decimal
    round_number: int


class CountingSnapshot(CamelModel):
    running: int
    true: float
    decks_remaining: float
    penetration: float
    side_counts: dict[str, int]


class BettingRecommendationSnapshot(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    recommended_bet: float
    kelly_bet: float
    spread: float
    advantage: float
    confidence: Literal["high", "medium", "low"]
    reasoning: str
    risk_of_ruin: float
    bankroll_units: int


class AlternativeSnapshot(CamelModel):
    action: str
    description: str
    risk: int | str
    situation: str


class StrategyHintSnapshot(CamelModel):
    action: str
    explanation: str
    confidence: str
    hand_type: str
    player_value: int
    dealer_value: int
    alternatives: list[AlternativeSnapshot] = Field(default_factory=list)
