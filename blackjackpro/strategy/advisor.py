"""Basic strategy hints with explanations and decision accuracy tracking."""

import logging
from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from blackjackpro.cards import Card
from blackjackpro.hand import Hand
from blackjackpro.strategy.basic import Action, BasicStrategy, HandType, StrategyLookup, dealer_value

logger = logging.getLogger(__name__)

# Chance of busting when hitting a hard total, in percent
BUST_RISK = {12: 31, 13: 38, 14: 46, 15: 54, 16: 62, 17: 69}

GRADE_THRESHOLDS = [
    (95, "A+"),
    (90, "A"),
    (85, "B+"),
    (80, "B"),
    (75, "C+"),
    (70, "C"),
    (65, "D+"),
    (60, "D"),
]

PAIR_EXPLANATIONS = {
    11: "Always split Aces - gives you two chances at blackjack.",
    8: "Always split 8s - 16 is a terrible hand, but 8 is a good starting point.",
    5: "Never split 5s - 10 is a great doubling hand.",
    10: "Never split ten-value cards - 20 is an excellent hand.",
}


def bust_risk(player_value: int) -> int:
    """Percent chance of busting with one more card."""
    if player_value <= 11:
        return 0
    return BUST_RISK.get(player_value, 100)


def dealer_strength(value: int) -> str:
    if 2 <= value <= 6:
        return "weak"
    if 7 <= value <= 9:
        return "medium"
    return "strong"


def accuracy_grade(accuracy: float) -> str:
    """Letter grade for a percentage of correct decisions."""
    for threshold, grade in GRADE_THRESHOLDS:
        if accuracy >= threshold:
            return grade
    return "F"


@dataclass(frozen=True)
class Alternative:
    """Another legal play and how risky it is."""

    action: Action
    description: str
    risk: int | str
    situation: str


@dataclass(frozen=True)
class StrategyHint:
    id: str
    action: Action
    explanation: str
    confidence: str
    hand_type: HandType
    player_value: int
    dealer_value: int
    alternatives: tuple[Alternative, ...] = ()


@dataclass(frozen=True)
class DecisionRecord:
    """A player action compared with the hint shown for it."""

    hint_id: str
    player_action: Action
    recommended_action: Action
    correct: bool
    hand_type: HandType
    player_value: int
    dealer_value: int
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def scenario(self) -> str:
        return f"{self.hand_type}_{self.player_value}_vs_{self.dealer_value}"


class StrategyAdvisor:
    """
    Issues basic strategy hints and grades the player against them.

    Accuracy is the share of issued hints that the player's next action
    followed.
    """

    def __init__(self, strategy: BasicStrategy | None = None, history_size: int = 200) -> None:
        self.strategy = strategy or BasicStrategy()
        self._total_hints = 0
        self._correct = 0
        self._decisions: deque[DecisionRecord] = deque(maxlen=history_size)

    # --- Hints ---

    def recommend(
        self,
        hand: Hand,
        dealer_card: Card,
        can_double: bool = True,
        can_split: bool = True,
    ) -> Action:
        """Basic strategy action without issuing a tracked hint."""
        return self.strategy.lookup_hand(hand, dealer_card, can_double, can_split).action

    def hint(
        self,
        hand: Hand,
        dealer_card: Card,
        can_double: bool = True,
        can_split: bool = True,
    ) -> StrategyHint:
        """
        Issue a hint for the hand and count it toward accuracy.

        Args:
            hand: Player's active hand
            dealer_card: Dealer's up-card
            can_double: Whether doubling is currently available
            can_split: Whether splitting is currently available

        Returns:
            StrategyHint with the recommended action and an explanation
        """
        lookup = self.strategy.lookup_hand(hand, dealer_card, can_double, can_split)
        self._total_hints += 1
        hint = StrategyHint(
            id=f"{hand}_vs_{dealer_card}",
            action=lookup.action,
            explanation=self.explain(lookup),
            confidence="high",
            hand_type=lookup.hand_type,
            player_value=hand.value,
            dealer_value=lookup.dealer_value,
            alternatives=tuple(self.alternatives(hand, dealer_card, can_double, can_split)),
        )
        logger.debug("Hint issued: %s -> %s", hint.id, hint.action)
        return hint

    def explain(self, lookup: StrategyLookup) -> str:
        total, dealer = lookup.total, lookup.dealer_value
        if lookup.double_unavailable:
            soft = "soft " if lookup.hand_type == "soft" else ""
            return (
                f"Would double on {soft}{total}, but since doubling isn't available, hit instead."
            )
        if lookup.hand_type == "pair" and lookup.action == Action.SPLIT:
            return PAIR_EXPLANATIONS.get(
                total, f"Split against dealer {dealer} - mathematically optimal play."
            )
        if lookup.hand_type == "soft":
            return self._soft_explanation(total, dealer, lookup.action)
        return self._hard_explanation(total, dealer, lookup.action)

    @staticmethod
    def _soft_explanation(total: int, dealer: int, action: Action) -> str:
        if action == Action.DOUBLE:
            return (
                f"Double down on soft {total} against dealer {dealer} - great opportunity "
                "to increase bet with low bust risk."
            )
        if action == Action.HIT:
            return f"Hit soft {total} - you cannot bust and may improve to a strong hand."
        return f"Stand on soft {total} - good hand that likely beats dealer {dealer}."

    @staticmethod
    def _hard_explanation(total: int, dealer: int, action: Action) -> str:
        if total <= 11:
            if action == Action.DOUBLE:
                return f"Double down on {total} - great doubling opportunity with no bust risk."
            return f"Always hit {total} - cannot bust and need to improve."
        if total == 12:
            if 4 <= dealer <= 6:
                return f"Stand on 12 against dealer {dealer} - dealer likely to bust."
            return f"Hit 12 against dealer {dealer} - dealer unlikely to bust."
        if total <= 16:
            if dealer <= 6:
                return f"Stand on {total} against weak dealer {dealer} - let dealer bust."
            return f"Hit {total} against strong dealer {dealer} - must try to improve."
        return f"Always stand on {total} - strong hand, high bust risk if hitting."

    def alternatives(
        self,
        hand: Hand,
        dealer_card: Card,
        can_double: bool = True,
        can_split: bool = True,
    ) -> list[Alternative]:
        """Legal plays for the hand with a rough risk assessment of each."""
        value = hand.value
        dealer = dealer_value(dealer_card)
        options = []

        if value < 21:
            if value <= 11:
                situation = "safe"
            elif value <= 16:
                situation = "moderate"
            else:
                situation = "high-risk"
            options.append(Alternative(Action.HIT, "Take another card", bust_risk(value), situation))

        if value >= 17:
            stand_situation = "strong"
        elif value >= 13:
            stand_situation = "moderate"
        else:
            stand_situation = "weak"
        options.append(
            Alternative(Action.STAND, "Keep current total", self._stand_risk(value, dealer), stand_situation)
        )

        if can_double and len(hand.cards) == 2:
            options.append(
                Alternative(
                    Action.DOUBLE,
                    "Double bet, take exactly one card",
                    bust_risk(value),
                    self._double_situation(hand, dealer),
                )
            )

        if can_split and hand.is_pair:
            options.append(
                Alternative(
                    Action.SPLIT,
                    "Split pair into two hands",
                    "moderate",
                    self._split_situation(hand.cards[0].value, dealer),
                )
            )
        return options

    @staticmethod
    def _stand_risk(value: int, dealer: int) -> str:
        if value >= 17:
            return "low"
        if value >= 13 and dealer <= 6:
            return "low"
        if value >= 12 and dealer <= 4:
            return "medium"
        return "high"

    @staticmethod
    def _double_situation(hand: Hand, dealer: int) -> str:
        value = hand.value
        if value == 11:
            return "excellent"
        if value == 10 and dealer <= 9:
            return "very-good"
        if value == 9 and 3 <= dealer <= 6:
            return "good"
        if hand.is_soft and 4 <= dealer <= 6:
            return "favorable"
        return "unfavorable"

    @staticmethod
    def _split_situation(pair_value: int, dealer: int) -> str:
        if pair_value in (11, 8):
            return "always-split"
        if pair_value in (2, 3, 6, 7) and dealer <= 7:
            return "favorable"
        if pair_value == 9 and dealer not in (7, 10, 11):
            return "favorable"
        if pair_value in (5, 10):
            return "never-split"
        return "situational"

    def analyze_situation(self, hand: Hand, dealer_card: Card) -> dict[str, Any]:
        dealer = dealer_value(dealer_card)
        if hand.is_pair:
            hand_type = "pair"
        else:
            hand_type = "soft" if hand.is_soft else "hard"
        return {
            "player_total": hand.value,
            "dealer_up_card": dealer,
            "player_hand_type": hand_type,
            "dealer_strength": dealer_strength(dealer),
            "bust_risk": bust_risk(hand.value),
        }

    @staticmethod
    def assess_risk(hand: Hand, action: Action) -> dict[str, str]:
        value = hand.value
        if action == Action.HIT:
            level = "high" if value >= 16 else "medium" if value >= 12 else "low"
            return {"level": level, "description": f"{bust_risk(value)}% chance of busting"}
        if action == Action.STAND:
            return {
                "level": "low" if value >= 17 else "medium",
                "description": "Risk depends on dealer's hole card",
            }
        if action == Action.DOUBLE:
            return {"level": "medium", "description": "Higher reward but only one card received"}
        if action == Action.SPLIT:
            return {"level": "medium", "description": "Creates two hands with additional bet required"}
        return {"level": "unknown", "description": "Risk assessment not available"}

    # --- Accuracy ---

    def record_decision(self, hint: StrategyHint, player_action: Action) -> DecisionRecord:
        """Compare the player's action with a previously issued hint."""
        correct = player_action == hint.action
        if correct:
            self._correct += 1
        record = DecisionRecord(
            hint_id=hint.id,
            player_action=player_action,
            recommended_action=hint.action,
            correct=correct,
            hand_type=hint.hand_type,
            player_value=hint.player_value,
            dealer_value=hint.dealer_value,
        )
        self._decisions.append(record)
        logger.info(
            "Decision %s: played %s, recommended %s",
            "correct" if correct else "incorrect",
            player_action,
            hint.action,
        )
        return record

    @property
    def total_hints(self) -> int:
        return self._total_hints

    @property
    def correct_decisions(self) -> int:
        return self._correct

    @property
    def decisions(self) -> list[DecisionRecord]:
        return list(self._decisions)

    @property
    def accuracy(self) -> float:
        """Percentage of issued hints the player followed."""
        if self._total_hints == 0:
            return 0.0
        return round(self._correct / self._total_hints * 100, 2)

    @property
    def grade(self) -> str:
        return accuracy_grade(self.accuracy)

    def _accuracy_by(self, key) -> dict[str, float]:
        totals: Counter = Counter()
        correct: Counter = Counter()
        for record in self._decisions:
            k = key(record)
            totals[k] += 1
            correct[k] += record.correct
        return {k: round(correct[k] / totals[k] * 100, 2) for k in totals}

    def accuracy_by_hand_type(self) -> dict[str, float]:
        return self._accuracy_by(lambda r: r.hand_type)

    def accuracy_by_action(self) -> dict[str, float]:
        """Accuracy grouped by the action the player chose."""
        return self._accuracy_by(lambda r: r.player_action.value)

    def common_mistakes(self, limit: int = 5) -> list[dict[str, Any]]:
        """Most frequent wrong plays, as (scenario, played, recommended, count)."""
        mistakes = Counter(
            (r.scenario, r.player_action, r.recommended_action)
            for r in self._decisions
            if not r.correct
        )
        return [
            {
                "scenario": scenario,
                "player_action": played.value,
                "recommended_action": recommended.value,
                "count": count,
                "description": f"{scenario.replace('_', ' ')}: chose {played} instead of {recommended}",
            }
            for (scenario, played, recommended), count in mistakes.most_common(limit)
        ]

    def stats(self) -> dict[str, Any]:
        return {
            "total_hints": self._total_hints,
            "correct_decisions": self._correct,
            "accuracy": self.accuracy,
            "grade": self.grade,
            "hand_type_accuracy": self.accuracy_by_hand_type(),
            "action_accuracy": self.accuracy_by_action(),
        }

    def reset(self) -> None:
        self._total_hints = 0
        self._correct = 0
        self._decisions.clear()

    def export_data(self) -> dict[str, Any]:
        return {
            "total_hints": self._total_hints,
            "correct_decisions": self._correct,
            "decisions": [
                {
                    **asdict(record),
                    "player_action": record.player_action.value,
                    "recommended_action": record.recommended_action.value,
                    "timestamp": record.timestamp.isoformat(),
                }
                for record in self._decisions
            ],
        }

    def import_data(self, data: dict[str, Any]) -> None:
        """Restore counters and the decision log written by export_data."""
        total_hints = int(data.get("total_hints", 0))
        correct = int(data.get("correct_decisions", 0))
        decisions = [
            DecisionRecord(
                hint_id=item["hint_id"],
                player_action=Action(item["player_action"]),
                recommended_action=Action(item["recommended_action"]),
                correct=bool(item["correct"]),
                hand_type=item["hand_type"],
                player_value=int(item["player_value"]),
                dealer_value=int(item["dealer_value"]),
                timestamp=datetime.fromisoformat(item["timestamp"]),
            )
            for item in data.get("decisions", [])
        ]

        self._total_hints = total_hints
        self._correct = correct
        self._decisions.clear()
        self._decisions.extend(decisions)
