"""Player-facing game settings as an immutable value."""

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Literal

from blackjackpro.errors import InvalidSettingError

GameSpeed = Literal["instant", "fast", "normal", "slow"]

SPEED_MULTIPLIERS: dict[str, float] = {
    "instant": 0.0,
    "fast": 0.3,
    "normal": 1.0,
    "slow": 2.0,
}

# camelCase names used by the presentation layer
SETTING_ALIASES = {
    "deckCount": "deck_count",
    "showBasicStrategyHints": "show_basic_strategy_hints",
    "cardCountingMode": "card_counting_mode",
    "minimumBet": "minimum_bet",
    "maximumBet": "maximum_bet",
    "gameSpeed": "game_speed",
    "autoPlay": "auto_play",
    "soundEffects": "sound_effects",
    "animationsEnabled": "animations_enabled",
}


@dataclass(frozen=True, slots=True)
class GameSettings:
    """
    Settings chosen by the player.

    Instances never change; ``updated`` returns a new value and the engine
    swaps it in. Saving settings is left to whoever holds the value.
    """

    deck_count: int = 6
    show_basic_strategy_hints: bool = True
    card_counting_mode: bool = False
    minimum_bet: int = 5
    maximum_bet: int = 500
    game_speed: GameSpeed = "normal"
    auto_play: bool = False
    sound_effects: bool = False
    animations_enabled: bool = True

    def __post_init__(self) -> None:
        for f in fields(self):
            _validate(f.name, getattr(self, f.name))
        if self.maximum_bet < self.minimum_bet:
            raise InvalidSettingError("maximum_bet", "maximum_bet must not be below minimum_bet")

    @staticmethod
    def resolve_key(key: str) -> str:
        """Map a camelCase or snake_case key to the field name."""
        name = SETTING_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            raise InvalidSettingError(key)
        return name

    def get(self, key: str) -> Any:
        return getattr(self, self.resolve_key(key))

    def updated(self, key: str, value: Any) -> "GameSettings":
        """
        Return a copy with one setting changed.

        Raises:
            InvalidSettingError: Unknown key or invalid value
        """
        return replace(self, **{self.resolve_key(key): value})

    @property
    def speed_multiplier(self) -> float:
        return SPEED_MULTIPLIERS[self.game_speed]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _validate(name: str, value: Any) -> None:
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise InvalidSettingError(name, f"{name} must be true or false")
    elif name == "deck_count":
        if not _is_int(value) or not 1 <= value <= 8:
            raise InvalidSettingError(name, "deck_count must be between 1 and 8")
    elif name in ("minimum_bet", "maximum_bet"):
        if not _is_int(value) or value < 1:
            raise InvalidSettingError(name, f"{name} must be a positive whole number")
    elif name == "game_speed":
        if value not in SPEED_MULTIPLIERS:
            raise InvalidSettingError(
                name, f"game_speed must be one of {', '.join(SPEED_MULTIPLIERS)}"
            )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_BOOL_FIELDS = {
    "show_basic_strategy_hints",
    "card_counting_mode",
    "auto_play",
    "sound_effects",
    "animations_enabled",
}
_FIELD_NAMES = set(SETTING_ALIASES.values())
