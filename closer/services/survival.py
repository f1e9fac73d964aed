"""Survival clock state machine.

A live-play session runs against a countdown budget:

    Running --combo hits 15, 30, ...--> Fever --10s elapse--> Running
    Running/Fever --budget reaches 0--> Expired (terminal)
    Fever --wrong answer--> Running

Correct answers add time (plus a bonus every 5th consecutive correct),
wrong answers and skips remove it, and the hosting loop drains it through
:meth:`SurvivalClock.tick`. The budget never exceeds its maximum.

Survival points are separate from flashcard scoring: one point per correct
answer, two once the combo reaches 10.
"""
from enum import Enum
from typing import Union

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.logging_config import get_logger
from closer.models import CardType

logger = get_logger(__name__)


class SurvivalRank(str, Enum):
    """Difficulty setting of a survival session."""
    ROOKIE = "ROOKIE"
    ACE = "ACE"
    LEGEND = "LEGEND"


class ClockState(str, Enum):
    RUNNING = "running"
    FEVER = "fever"
    EXPIRED = "expired"


def speed_multiplier(combo: int, balance: GameBalance = DEFAULT_BALANCE) -> float:
    """Bar speed-up for a combo: 1.0 below 5, 1.2 from 5, 1.5 from 10."""
    for min_combo, multiplier in balance.speed_steps:
        if combo >= min_combo:
            return multiplier
    return 1.0


def bar_duration_ms(
    rank: Union[SurvivalRank, str],
    combo: int,
    is_fever: bool,
    balance: GameBalance = DEFAULT_BALANCE
) -> int:
    """
    Time given to answer the current question before it times out.

    Args:
        rank: Survival rank (unknown ranks use ROOKIE timing)
        combo: Current combo
        is_fever: Whether fever is active (fixed short bar)
        balance: Game balance

    Returns:
        Duration in milliseconds
    """
    if is_fever:
        return balance.fever_bar_duration_ms
    key = rank.value if isinstance(rank, SurvivalRank) else str(rank)
    base_sec = balance.rank_time_to_edge_sec.get(
        key, balance.rank_time_to_edge_sec[SurvivalRank.ROOKIE.value]
    )
    return round(base_sec * 1000 / speed_multiplier(combo, balance))


def score_per_correct(combo: int, balance: GameBalance = DEFAULT_BALANCE) -> int:
    return 2 if combo >= balance.double_score_combo else 1


def question_timeout_ms(
    card_type: Union[CardType, str],
    balance: GameBalance = DEFAULT_BALANCE
) -> int:
    """Answer window for flashcard mode, by card type."""
    key = card_type.value if isinstance(card_type, CardType) else str(card_type)
    return balance.question_timeout_ms.get(key, balance.question_timeout_ms[CardType.VOCABULARY.value])


class SurvivalClock:
    """Per-session countdown and combo tracker.

    Events must be applied in the order they happened. Once the clock has
    expired every event is ignored.
    """

    def __init__(
        self,
        rank: Union[SurvivalRank, str] = SurvivalRank.ROOKIE,
        balance: GameBalance = DEFAULT_BALANCE
    ):
        try:
            self.rank = SurvivalRank(rank)
        except ValueError:
            logger.warning(f"Unknown survival rank {rank!r}, using ROOKIE")
            self.rank = SurvivalRank.ROOKIE
        self.balance = balance
        self.reset()

    def reset(self) -> None:
        """Start a fresh session."""
        self.state = ClockState.RUNNING
        self.budget_sec = float(self.balance.initial_survival_sec)
        self.combo = 0
        self.max_combo = 0
        self.fever_remaining_sec = 0.0
        self.score = 0
        self.correct_count = 0
        self.answered_count = 0

    @property
    def is_fever(self) -> bool:
        return self.state == ClockState.FEVER

    @property
    def is_expired(self) -> bool:
        return self.state == ClockState.EXPIRED

    @property
    def bar_duration_ms(self) -> int:
        return bar_duration_ms(self.rank, self.combo, self.is_fever, self.balance)

    def _add_time(self, seconds: float) -> None:
        self.budget_sec = min(self.balance.max_survival_sec, self.budget_sec + seconds)

    def _remove_time(self, seconds: float) -> None:
        self.budget_sec = max(0.0, self.budget_sec - seconds)
        if self.budget_sec <= 0:
            self._expire()

    def _expire(self) -> None:
        self.budget_sec = 0.0
        self.fever_remaining_sec = 0.0
        self.state = ClockState.EXPIRED
        logger.debug(
            f"Survival clock expired: score={self.score}, max_combo={self.max_combo}"
        )

    def _exit_fever(self) -> None:
        self.fever_remaining_sec = 0.0
        self.state = ClockState.RUNNING

    def answer_correct(self) -> int:
        """
        Apply a correct answer.

        Returns:
            Points earned (0 if the clock has expired)
        """
        if self.is_expired:
            return 0

        self.answered_count += 1
        self.correct_count += 1
        self.combo += 1
        self.max_combo = max(self.max_combo, self.combo)

        bonus = self.balance.correct_add_sec
        if self.combo % self.balance.combo_bonus_interval == 0:
            bonus += self.balance.combo_bonus_sec
        self._add_time(bonus)

        if (self.state == ClockState.RUNNING
                and self.combo % self.balance.fever_entry_combo == 0):
            self.state = ClockState.FEVER
            self.fever_remaining_sec = float(self.balance.fever_duration_sec)
            logger.debug(f"Fever started at combo {self.combo}")

        points = score_per_correct(self.combo, self.balance)
        self.score += points
        return points

    def answer_wrong(self) -> None:
        """Apply a wrong answer: penalty, combo reset, fever cancelled."""
        if self.is_expired:
            return
        self.answered_count += 1
        self.combo = 0
        if self.is_fever:
            self._exit_fever()
        self._remove_time(self.balance.wrong_penalty_sec)

    def skip(self) -> None:
        """Apply a skip or timeout: the lighter penalty, combo reset, fever cancelled."""
        if self.is_expired:
            return
        self.answered_count += 1
        self.combo = 0
        if self.is_fever:
            self._exit_fever()
        self._remove_time(self.balance.skip_penalty_sec)

    def tick(self, elapsed_sec: float) -> ClockState:
        """
        Drain the budget by elapsed real time.

        Args:
            elapsed_sec: Seconds since the previous tick. Non-positive values
                         change nothing.

        Returns:
            State after the tick
        """
        if self.is_expired or elapsed_sec <= 0:
            return self.state

        if self.is_fever:
            self.fever_remaining_sec -= elapsed_sec
            if self.fever_remaining_sec <= 0:
                self._exit_fever()

        self._remove_time(elapsed_sec)
        return self.state

    def snapshot(self) -> dict:
        """Plain-data view of the clock for clients."""
        return {
            "rank": self.rank.value,
            "state": self.state.value,
            "budget_sec": round(self.budget_sec, 3),
            "combo": self.combo,
            "max_combo": self.max_combo,
            "fever_remaining_sec": round(max(0.0, self.fever_remaining_sec), 3),
            "bar_duration_ms": self.bar_duration_ms,
            "score": self.score,
            "correct_count": self.correct_count,
            "answered_count": self.answered_count,
        }
