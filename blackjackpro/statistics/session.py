"""Session statistics: bank, results and hand history."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from blackjackpro.hand import Hand

logger = logging.getLogger(__name__)

RoundResult = Literal["win", "loss", "push"]


@dataclass(frozen=True)
class HandRecord:
    """Summary of one settled round."""

    hand_number: int
    wagered: int
    payout: int
    result: RoundResult
    player_values: tuple[int, ...]
    dealer_value: int
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def net_result(self) -> int:
        return self.payout - self.wagered


class SessionStats:
    """
    Running totals for a playing session.

    The bank is held as a Decimal and never drops below zero.
    """

    def __init__(self, initial_bank: Decimal = Decimal("1000"), history_size: int = 100) -> None:
        self._history_size = history_size
        self.start_new_session(initial_bank)

    def start_new_session(self, initial_bank: Decimal = Decimal("1000")) -> None:
        self.initial_bank = Decimal(initial_bank)
        self.bank_amount = Decimal(initial_bank)
        self.hands_played = 0
        self.wins = 0
        self.losses = 0
        self.pushes = 0
        self.blackjacks = 0
        self.busts = 0
        self.total_wagered = 0
        self.total_won = 0
        self.started_at = datetime.now()
        self._history: deque[HandRecord] = deque(maxlen=self._history_size)
        logger.info("New session started with $%s", self.bank_amount)

    def update_bank(self, amount: Decimal | int) -> Decimal:
        """Apply a win (positive) or loss (negative) to the bank."""
        previous = self.bank_amount
        self.bank_amount += Decimal(amount)
        if self.bank_amount < 0:
            logger.warning("Bank depleted, clamping at zero")
            self.bank_amount = Decimal("0")
        logger.info("Bank %+d: $%s -> $%s", int(amount), previous, self.bank_amount)
        return self.bank_amount

    def can_afford(self, amount: int) -> bool:
        return Decimal(amount) <= self.bank_amount

    def record_hand(
        self,
        player_hands: list[Hand],
        dealer_hand: Hand,
        wagered: int,
        payout: int,
        won: int,
        lost: int,
        pushed: int,
        blackjacks: int = 0,
    ) -> HandRecord:
        """
        Record a settled round.

        Args:
            player_hands: The player's hands at settlement
            dealer_hand: The dealer's final hand
            wagered: Total amount bet on the round
            payout: Total amount returned to the player
            won: Number of hands won
            lost: Number of hands lost
            pushed: Number of hands pushed
            blackjacks: Number of naturals paid

        Returns:
            The stored HandRecord
        """
        self.hands_played += 1
        self.wins += won
        self.losses += lost
        self.pushes += pushed
        self.blackjacks += blackjacks
        self.busts += sum(1 for hand in player_hands if hand.is_busted)
        self.total_wagered += wagered
        self.total_won += payout

        if won > 0:
            result: RoundResult = "win"
        elif lost > 0:
            result = "loss"
        else:
            result = "push"

        record = HandRecord(
            hand_number=self.hands_played,
            wagered=wagered,
            payout=payout,
            result=result,
            player_values=tuple(hand.value for hand in player_hands),
            dealer_value=dealer_hand.value,
        )
        self._history.append(record)
        return record

    @property
    def history(self) -> list[HandRecord]:
        return list(self._history)

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses + self.pushes
        if decided == 0:
            return 0.0
        return round(self.wins / decided * 100, 2)

    @property
    def net_gain(self) -> Decimal:
        return self.bank_amount - self.initial_bank

    @property
    def average_bet(self) -> float:
        if self.hands_played == 0:
            return 0.0
        return self.total_wagered / self.hands_played

    @property
    def blackjack_frequency(self) -> float:
        if self.hands_played == 0:
            return 0.0
        return self.blackjacks / self.hands_played * 100

    def _longest_run(self, result: RoundResult) -> int:
        best = current = 0
        for record in self._history:
            current = current + 1 if record.result == result else 0
            best = max(best, current)
        return best

    @property
    def best_win_streak(self) -> int:
        return self._longest_run("win")

    @property
    def worst_loss_streak(self) -> int:
        return self._longest_run("loss")

    def export_data(self) -> dict[str, Any]:
        return {
            "hands_played": self.hands_played,
            "wins": self.wins,
            "losses": self.losses,
            "pushes": self.pushes,
            "blackjacks": self.blackjacks,
            "busts": self.busts,
            "bank_amount": str(self.bank_amount),
            "initial_bank": str(self.initial_bank),
            "total_wagered": self.total_wagered,
            "total_won": self.total_won,
            "win_rate": self.win_rate,
            "best_win_streak": self.best_win_streak,
            "worst_loss_streak": self.worst_loss_streak,
        }

    def import_data(self, data: dict[str, Any]) -> None:
        """
        Restore the counters written by export_data; hand history is not restored.

        Nothing is changed if any field fails to parse.
        """
        counts = {
            name: int(data.get(name, 0))
            for name in (
                "hands_played",
                "wins",
                "losses",
                "pushes",
                "blackjacks",
                "busts",
                "total_wagered",
                "total_won",
            )
        }
        bank_amount = Decimal(str(data.get("bank_amount", self.bank_amount)))
        initial_bank = Decimal(str(data.get("initial_bank", self.initial_bank)))

        for name, value in counts.items():
            setattr(self, name, value)
        self.bank_amount = bank_amount
        self.initial_bank = initial_bank
