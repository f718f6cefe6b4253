"""Configuration management with environment variable support."""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class GameConfig:
    """Default table configuration."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("BLACKJACK_DECKS", "6")))
    penetration: float = field(
        default_factory=lambda: float(os.getenv("BLACKJACK_PENETRATION", "0.75"))
    )
    min_bet: int = 5
    max_bet: int = 500
    default_bet: int = 25
    initial_bankroll: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("BLACKJACK_BANKROLL", "1000"))
    )


@dataclass(frozen=True)
class EngineConfig:
    """Limits and pacing for the hand engine."""

    undo_history_size: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_UNDO_HISTORY", "5"))
    )
    insurance_offer_timeout: float = field(
        default_factory=lambda: float(os.getenv("BLACKJACK_INSURANCE_TIMEOUT", "10"))
    )
    count_history_size: int = 200
    decision_history_size: int = 200
    hand_history_size: int = 100
    event_history_size: int = 500
    card_delay_ms: int = 500  # at "normal" game speed


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING").upper())
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))

    game: GameConfig = field(default_factory=GameConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def configure_logging(self) -> None:
        """Set up root logging for a host application; the engine never calls this."""
        level = logging.DEBUG if self.debug else getattr(logging, self.logging.level, logging.WARNING)
        logging.basicConfig(level=level, format=self.logging.format)


# Global configuration instance
config = AppConfig()
