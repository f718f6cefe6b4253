"""Live Hi-Lo count tracking with betting and deviation advice."""

import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Callable, Literal

from blackjackpro.cards import CARDS_PER_DECK, Card, Rank
from blackjackpro.counting.base import CountingSystem
from blackjackpro.counting.hilo import HiLoSystem
from blackjackpro.hand import Hand
from blackjackpro.statistics.bankroll import risk_of_ruin, units_in_bankroll
from blackjackpro.statistics.kelly import fractional_kelly_bet
from blackjackpro.strategy.deviations import INDEX_PLAYS, IndexPlay, IndexRecommendation, find_deviation

logger = logging.getLogger(__name__)

RiskLevel = Literal["conservative", "moderate", "aggressive"]
Confidence = Literal["high", "medium", "low"]

MIN_DECKS_REMAINING = 0.5
BASE_ADVANTAGE = -0.5
ADVANTAGE_PER_TRUE_COUNT = 0.5
KELLY_FRACTION = 0.25
MAX_BANKROLL_FRACTION = 0.1
BETTING_HISTORY_SIZE = 50
HANDS_PER_HOUR = 60

# (true count threshold, bet multiple), ascending
CONSERVATIVE_SPREAD: list[tuple[float, int]] = [
    (-10, 0), (-2, 1), (1, 1), (2, 2), (3, 3), (4, 4), (5, 5), (10, 6),
]
AGGRESSIVE_SPREAD: list[tuple[float, int]] = [
    (-10, 0), (-2, 1), (1, 1), (2, 3), (3, 5), (4, 7), (5, 10), (10, 12),
]


def spread_multiple(true_count: float, spread: list[tuple[float, int]]) -> int:
    """Bet multiple of the highest threshold the true count has reached."""
    multiple = 1
    for threshold, units in spread:
        if true_count >= threshold:
            multiple = units
    return multiple


def grade_estimate(deviation: int) -> int:
    """Score a count estimate: exact is 100, each step off costs more."""
    scores = {0: 100, 1: 90, 2: 75, 3: 60}
    if deviation in scores:
        return scores[deviation]
    return max(0, 50 - (deviation - 3) * 10)


@dataclass(frozen=True)
class CountEvent:
    """One counted card and the count right after it."""

    card: str
    hi_lo_value: int
    running_count: int
    true_count: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class CountingState:
    """Snapshot of the live count."""

    running_count: int
    true_count: float
    decks_remaining: float
    cards_dealt: int
    penetration: float
    aces: int
    fives: int
    tens: int

    @property
    def side_counts(self) -> dict[str, int]:
        return {"aces": self.aces, "fives": self.fives, "tens": self.tens}


@dataclass(frozen=True)
class BettingRecommendation:
    recommended_bet: float
    kelly_bet: float
    spread: float
    advantage: float
    confidence: Confidence
    reasoning: str
    risk_of_ruin: float
    bankroll_units: int


@dataclass(frozen=True)
class CountEstimate:
    """A practice-mode guess at the running count."""

    estimate: int
    actual: int
    deviation: int
    score: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class PracticeSummary:
    duration: float
    accuracy: float
    graded_accuracy: float
    total_estimates: int
    average_deviation: float


@dataclass(frozen=True)
class HeatSuggestion:
    type: str
    level: str
    message: str


@dataclass(frozen=True)
class ExpectedValue:
    bet_amount: float
    advantage: float
    expected_value: float
    hourly_ev: float


class CardCounter:
    """
    Running and true count for the live shoe.

    Only cards the player can see are counted; the dealer's hole card is
    counted when it is revealed. Decks remaining are derived from the number
    of counted cards and never drop below half a deck.
    """

    def __init__(
        self,
        total_decks: int = 6,
        system: CountingSystem | None = None,
        history_size: int = 200,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the counter.

        Args:
            total_decks: Decks in the shoe being counted
            system: Tag values to count with (Hi-Lo by default)
            history_size: Number of per-card events to keep
            clock: Monotonic clock in seconds, for session timing
        """
        self.system = system or HiLoSystem()
        self._clock = clock
        self._history_size = history_size
        self._enabled = False
        self._practice_mode = False
        self._practice_started: float | None = None
        self._total_decks = total_decks

        self._running_count = 0
        self._cards_dealt = 0
        self._aces = 0
        self._fives = 0
        self._tens = 0
        self._history: deque[CountEvent] = deque(maxlen=history_size)

        self._estimates: list[CountEstimate] = []
        self._betting_history: deque[float] = deque(maxlen=BETTING_HISTORY_SIZE)
        self._hands_played = 0
        self._max_count = 0
        self._min_count = 0
        self._session_started = clock()

    # --- Lifecycle ---

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Turn counting on or off; turning it off clears the count."""
        self._enabled = enabled
        if not enabled:
            self.reset()
        logger.info("Card counting %s", "enabled" if enabled else "disabled")

    def set_total_decks(self, decks: int) -> None:
        if decks < 1:
            raise ValueError("decks must be at least 1")
        self._total_decks = decks
        self.reset()

    @property
    def total_decks(self) -> int:
        return self._total_decks

    def reset(self) -> None:
        """Clear the count, as when the shoe is reshuffled."""
        self._running_count = 0
        self._cards_dealt = 0
        self._aces = 0
        self._fives = 0
        self._tens = 0
        self._history.clear()
        logger.debug("Card count reset")

    def reset_session(self) -> None:
        """Clear session analytics (estimates, bets, extremes)."""
        self._estimates.clear()
        self._betting_history.clear()
        self._hands_played = 0
        self._max_count = 0
        self._min_count = 0
        self._session_started = self._clock()

    # --- Counting ---

    def update_count(self, card: Card, is_visible: bool = True) -> CountEvent | None:
        """
        Count a dealt card.

        Args:
            card: The card dealt
            is_visible: Whether the player can see the card

        Returns:
            The count event, or None when the card was not counted
        """
        if not self._enabled or not is_visible:
            return None

        tag = self.system.tag(card)
        self._running_count += tag
        self._cards_dealt += 1

        if card.rank == Rank.ACE:
            self._aces += 1
        elif card.rank == Rank.FIVE:
            self._fives += 1
        elif card.is_ten_value:
            self._tens += 1

        self._max_count = max(self._max_count, self._running_count)
        self._min_count = min(self._min_count, self._running_count)

        event = CountEvent(
            card=str(card),
            hi_lo_value=tag,
            running_count=self._running_count,
            true_count=self.true_count,
        )
        self._history.append(event)
        logger.debug(
            "Count updated: RC=%d TC=%.1f card=%s", self._running_count, event.true_count, card
        )
        return event

    @property
    def running_count(self) -> int:
        return self._running_count

    @property
    def cards_dealt(self) -> int:
        return self._cards_dealt

    @property
    def decks_remaining(self) -> float:
        remaining = CARDS_PER_DECK * self._total_decks - self._cards_dealt
        return max(MIN_DECKS_REMAINING, remaining / CARDS_PER_DECK)

    @property
    def true_count(self) -> float:
        return compute_true_count(self._running_count, self.decks_remaining)

    @property
    def penetration(self) -> float:
        """Percentage of the shoe counted so far."""
        return self._cards_dealt / (CARDS_PER_DECK * self._total_decks) * 100

    @property
    def side_counts(self) -> dict[str, int]:
        return {"aces": self._aces, "fives": self._fives, "tens": self._tens}

    @property
    def history(self) -> list[CountEvent]:
        return list(self._history)

    @property
    def max_count(self) -> int:
        return self._max_count

    @property
    def min_count(self) -> int:
        return self._min_count

    def state(self) -> CountingState:
        return CountingState(
            running_count=self._running_count,
            true_count=self.true_count,
            decks_remaining=self.decks_remaining,
            cards_dealt=self._cards_dealt,
            penetration=self.penetration,
            aces=self._aces,
            fives=self._fives,
            tens=self._tens,
        )

    # --- Advice ---

    def advantage(self) -> float:
        """Estimated player advantage in percent at the current true count."""
        return BASE_ADVANTAGE + ADVANTAGE_PER_TRUE_COUNT * self.true_count

    def confidence_level(self) -> Confidence:
        penetration_factor = min(1.0, self.penetration / 50)
        magnitude = min(abs(self.true_count) / 5, 1.0)
        score = penetration_factor * 0.7 + magnitude * 0.3
        if score > 0.8:
            return "high"
        if score > 0.5:
            return "medium"
        return "low"

    @staticmethod
    def betting_reasoning(true_count: float) -> str:
        if true_count <= 1:
            return "Count is neutral/negative. Stick to minimum bet."
        if true_count <= 2:
            return "Slight positive count. Small bet increase recommended."
        if true_count <= 4:
            return "Good positive count. Increase bet significantly."
        return "Very high count. Maximum betting advantage."

    def betting_recommendation(
        self,
        base_bet: float = 25,
        bankroll: float = 1000,
        risk_level: RiskLevel = "moderate",
    ) -> BettingRecommendation:
        """
        Recommend a bet from the true count.

        The spread table gives a multiple of the base bet, capped at a tenth
        of the bankroll and never below the base bet. The quarter-Kelly bet is
        reported alongside as a cross-check.

        Args:
            base_bet: Betting unit
            bankroll: Current bankroll
            risk_level: 'aggressive' uses the wider spread, anything else the conservative one

        Returns:
            BettingRecommendation
        """
        tc = self.true_count
        spread = AGGRESSIVE_SPREAD if risk_level == "aggressive" else CONSERVATIVE_SPREAD
        bet_size = base_bet * spread_multiple(tc, spread)
        advantage = self.advantage()
        kelly = fractional_kelly_bet(bankroll, advantage, KELLY_FRACTION)
        recommended = max(base_bet, min(bet_size, bankroll * MAX_BANKROLL_FRACTION))

        return BettingRecommendation(
            recommended_bet=recommended,
            kelly_bet=min(bet_size, kelly),
            spread=bet_size / base_bet if base_bet else 0.0,
            advantage=advantage,
            confidence=self.confidence_level(),
            reasoning=self.betting_reasoning(tc),
            risk_of_ruin=risk_of_ruin(bankroll, recommended, advantage),
            bankroll_units=units_in_bankroll(bankroll, base_bet),
        )

    def index_play(
        self,
        hand: Hand,
        dealer_card: Card,
        plays: list[IndexPlay] = INDEX_PLAYS,
    ) -> IndexRecommendation:
        """Check the index plays for a deviation at the current true count."""
        confidence = self.confidence_level()
        play = find_deviation(hand, dealer_card, self.true_count, plays)
        if play is None:
            return IndexRecommendation.none(confidence)
        return IndexRecommendation(True, play.action_name, play.description, confidence)

    def risk_of_ruin(self, bankroll: float, bet_size: float, advantage: float | None = None) -> float:
        return risk_of_ruin(bankroll, bet_size, self.advantage() if advantage is None else advantage)

    def expected_value(self, bet_amount: float) -> ExpectedValue:
        advantage = self.advantage()
        ev = bet_amount * advantage / 100
        return ExpectedValue(
            bet_amount=bet_amount,
            advantage=round(advantage, 2),
            expected_value=round(ev, 2),
            hourly_ev=round(ev * HANDS_PER_HOUR, 2),
        )

    # --- Practice mode ---

    @property
    def practice_mode(self) -> bool:
        return self._practice_mode

    def start_practice(self) -> None:
        self._practice_mode = True
        self._practice_started = self._clock()
        self._estimates.clear()
        logger.info("Counting practice started")

    def end_practice(self) -> PracticeSummary | None:
        """Leave practice mode and summarize the estimates made."""
        self._practice_mode = False
        if self._practice_started is None:
            return None
        summary = PracticeSummary(
            duration=self._clock() - self._practice_started,
            accuracy=self.count_accuracy,
            graded_accuracy=self.graded_accuracy,
            total_estimates=len(self._estimates),
            average_deviation=self.average_deviation,
        )
        self._practice_started = None
        logger.info("Counting practice ended: accuracy %.1f%%", summary.accuracy)
        return summary

    def record_count_estimate(self, estimate: int) -> CountEstimate | None:
        """Compare a practice guess with the actual running count."""
        if not self._practice_mode:
            return None
        deviation = abs(estimate - self._running_count)
        record = CountEstimate(
            estimate=estimate,
            actual=self._running_count,
            deviation=deviation,
            score=grade_estimate(deviation),
        )
        self._estimates.append(record)
        return record

    @property
    def estimates(self) -> list[CountEstimate]:
        return list(self._estimates)

    @property
    def count_accuracy(self) -> float:
        """Percentage of estimates that were exactly right."""
        if not self._estimates:
            return 0.0
        perfect = sum(1 for e in self._estimates if e.deviation == 0)
        return perfect / len(self._estimates) * 100

    @property
    def graded_accuracy(self) -> float:
        if not self._estimates:
            return 0.0
        return sum(e.score for e in self._estimates) / len(self._estimates)

    @property
    def average_deviation(self) -> float:
        if not self._estimates:
            return 0.0
        return sum(e.deviation for e in self._estimates) / len(self._estimates)

    # --- Session analytics ---

    def record_hand(self) -> None:
        self._hands_played += 1

    @property
    def hands_played(self) -> int:
        return self._hands_played

    def record_bet(self, amount: float) -> None:
        self._betting_history.append(amount)

    def session_minutes(self) -> int:
        return int((self._clock() - self._session_started) // 60)

    def betting_correlation(self) -> float:
        """Rough 0-1 measure of how often big bets went with high counts."""
        if len(self._betting_history) < 5 or len(self._history) < 5:
            return 0.0
        bets = list(self._betting_history)[-10:]
        counts = [event.true_count for event in list(self._history)[-10:]]
        correlation = sum(0.1 for bet, tc in zip(bets, counts) if tc > 1 and bet > 25)
        return min(1.0, correlation)

    def heat_suggestions(self) -> list[HeatSuggestion]:
        suggestions = []
        recent = list(self._betting_history)[-10:]
        if len(recent) > 5 and min(recent) > 0 and max(recent) / min(recent) > 8:
            suggestions.append(
                HeatSuggestion(
                    "betting",
                    "high",
                    "High betting spread detected. Consider reducing spread or taking a break.",
                )
            )
        if self.session_minutes() > 120:
            suggestions.append(
                HeatSuggestion(
                    "time",
                    "medium",
                    "Long session detected. Consider taking a break to avoid fatigue.",
                )
            )
        if abs(self.true_count) > 4:
            suggestions.append(
                HeatSuggestion(
                    "count", "medium", "Extreme count detected. Be aware of increased scrutiny."
                )
            )
        return suggestions

    def export_data(self) -> dict[str, Any]:
        """Counting analytics as plain data."""
        return {
            "session_stats": {
                "hands_played": self._hands_played,
                "count_accuracy": self.count_accuracy,
                "graded_accuracy": self.graded_accuracy,
                "average_deviation": self.average_deviation,
                "max_count": self._max_count,
                "min_count": self._min_count,
            },
            "counting_accuracy": [
                {**asdict(e), "timestamp": e.timestamp.isoformat()} for e in self._estimates
            ],
            "betting_history": list(self._betting_history),
            "current_state": asdict(self.state()),
        }

    def import_data(self, data: dict[str, Any]) -> None:
        """Restore session analytics written by export_data."""
        stats = data.get("session_stats", {})
        hands_played = int(stats.get("hands_played", 0))
        max_count = int(stats.get("max_count", 0))
        min_count = int(stats.get("min_count", 0))
        estimates = [
            CountEstimate(
                estimate=int(e["estimate"]),
                actual=int(e["actual"]),
                deviation=int(e["deviation"]),
                score=int(e.get("score", grade_estimate(int(e["deviation"])))),
                timestamp=datetime.fromisoformat(e["timestamp"]) if "timestamp" in e else datetime.now(),
            )
            for e in data.get("counting_accuracy", [])
        ]
        betting_history = deque(
            (float(b) for b in data.get("betting_history", [])), maxlen=BETTING_HISTORY_SIZE
        )

        self._hands_played = hands_played
        self._max_count = max_count
        self._min_count = min_count
        self._estimates = estimates
        self._betting_history = betting_history

    def __repr__(self) -> str:
        return f"CardCounter(running_count={self._running_count}, true_count={self.true_count:.1f})"


def compute_true_count(running_count: int, decks_remaining: float) -> float:
    """True count from a running count and decks remaining (floored at half a deck)."""
    return running_count / max(MIN_DECKS_REMAINING, decks_remaining)
