"""Flashcard-mode scoring: combo multiplier, speed bonus and run ranks.

    score = ceil(base_points * (1 + combo/10) * (1 + remaining_rate * 0.5))

Base points come from the card's rarity. This path is separate from the
survival clock's per-correct points in :mod:`closer.services.survival`.
"""
import math
from enum import Enum
from typing import Optional, Union

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.logging_config import get_logger
from closer.models import GameMode, RunResult, utcnow
from closer.services.stage_ladder import Rarity, rarity_from_difficulty

logger = get_logger(__name__)


class RunRank(str, Enum):
    """Milestone rank awarded to a finished run."""
    S = "S"
    A = "A"
    B = "B"


def base_points(
    rarity: Union[Rarity, str],
    balance: GameBalance = DEFAULT_BALANCE
) -> int:
    """Base points for a rarity tier. Unknown tiers score as COMMON."""
    key = rarity.value if isinstance(rarity, Rarity) else str(rarity)
    return balance.rarity_base_points.get(key, balance.rarity_base_points[Rarity.COMMON.value])


def combo_multiplier(combo: float, balance: GameBalance = DEFAULT_BALANCE) -> float:
    """1 + combo/10: 10 combo doubles the score, 100 combo gives 11x."""
    return 1 + combo / balance.combo_divisor


def speed_bonus(remaining_rate: float, balance: GameBalance = DEFAULT_BALANCE) -> float:
    """
    Bonus for answering early.

    Args:
        remaining_rate: Fraction of the time budget still unused (clamped to [0, 1])

    Returns:
        1.5 for an instant answer down to 1.0 at the buzzer
    """
    rate = max(0.0, min(1.0, remaining_rate))
    return 1 + rate * balance.speed_bonus_max


def score_per_question(
    base: float,
    combo: float,
    remaining_rate: float,
    balance: GameBalance = DEFAULT_BALANCE
) -> int:
    """Points for one correct answer, always rounded up."""
    raw = base * combo_multiplier(combo, balance) * speed_bonus(remaining_rate, balance)
    return math.ceil(raw)


def rank_from_run(
    total_score: int,
    max_combo: int,
    correct_rate: float,
    balance: GameBalance = DEFAULT_BALANCE
) -> Optional[RunRank]:
    """
    Classify a finished run.

    Tiers are checked from the top so a run is never given a lower rank
    than it qualifies for:
    - S: score >= 1,000,000 and max combo >= 50
    - A: score >= 500,000 and correct rate >= 0.9
    - B: score >= 100,000
    - otherwise no rank
    """
    if total_score >= balance.rank_s_min_score and max_combo >= balance.rank_s_min_combo:
        return RunRank.S
    if total_score >= balance.rank_a_min_score and correct_rate >= balance.rank_a_min_correct_rate:
        return RunRank.A
    if total_score >= balance.rank_b_min_score:
        return RunRank.B
    return None


class RunScorer:
    """Accumulates one flashcard run, answer by answer.

    Answers must be recorded in the order they happened; each one depends on
    the combo left by the previous answer.
    """

    def __init__(
        self,
        learner_id: str,
        mode: GameMode = GameMode.NATIONAL,
        balance: GameBalance = DEFAULT_BALANCE
    ):
        self.learner_id = learner_id
        self.mode = mode
        self.balance = balance
        self.total_score = 0
        self.combo = 0
        self.max_combo = 0
        self.answered = 0
        self.correct = 0
        self.elapsed_ms = 0

    def record(
        self,
        correct: bool,
        difficulty: Optional[str] = None,
        remaining_rate: float = 0.0,
        response_time_ms: int = 0
    ) -> int:
        """
        Record one answer.

        The combo used for scoring is the streak before this answer, so the
        first correct answer of a run scores at 1x.

        Args:
            correct: Whether the answer was correct
            difficulty: Card difficulty label, mapped to a rarity
            remaining_rate: Fraction of the question timer left when answering
            response_time_ms: Time spent on the question

        Returns:
            Points earned by this answer (0 for a miss)
        """
        self.answered += 1
        self.elapsed_ms += max(0, int(response_time_ms))

        if not correct:
            self.combo = 0
            return 0

        rarity = rarity_from_difficulty(difficulty, self.balance)
        points = score_per_question(
            base_points(rarity, self.balance), self.combo, remaining_rate, self.balance
        )
        self.total_score += points
        self.correct += 1
        self.combo += 1
        self.max_combo = max(self.max_combo, self.combo)
        return points

    @property
    def correct_rate(self) -> float:
        return self.correct / self.answered if self.answered else 0.0

    def finish(self) -> RunResult:
        """Freeze the run into a RunResult with its rank."""
        rank = rank_from_run(self.total_score, self.max_combo, self.correct_rate, self.balance)
        result = RunResult(
            learner_id=self.learner_id,
            score=self.total_score,
            max_combo=self.max_combo,
            correct_rate=self.correct_rate,
            elapsed_ms=self.elapsed_ms,
            mode=self.mode,
            rank=rank.value if rank else None,
            created_at=utcnow(),
        )
        logger.info(
            f"Run finished: score={result.score}, max_combo={result.max_combo}, "
            f"rank={result.rank}",
            extra={"learner_id": self.learner_id}
        )
        return result
