"""Forgetting-curve retention model.

Retention follows R = e^(-t/S), where t is the time since the last review in
days and S is the card's memory strength. A correct answer climbs the stage
ladder (two stages when the answer was fast) and stretches the interval by
2.5x, up to a one-year "graduated" interval at the top stage. A miss resets
the card to stage 1 with a half-day interval and baseline strength, with no
regard for its history.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Union

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.constants import MS_PER_DAY
from closer.models import CardType, ReviewState
from closer.services.stage_ladder import clamp_stage, interval_for_stage


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of grading one review."""
    stage: int
    next_interval_ms: float
    strength: float


def compute_retention(elapsed_days: float, strength: float) -> float:
    """
    Compute the modeled probability that a card is still remembered.

    Args:
        elapsed_days: Days since the last review (caller keeps this >= 0)
        strength: Memory strength S

    Returns:
        e^(-elapsed_days / strength), or 0.0 when strength <= 0
    """
    if strength <= 0:
        return 0.0
    return math.exp(-elapsed_days / strength)


def on_correct(
    stage: int,
    interval_ms: float,
    strength: float,
    fast_answer: bool = False,
    balance: GameBalance = DEFAULT_BALANCE
) -> ReviewOutcome:
    """
    Grade a correct answer.

    The same growth factor applies whether the answer jumped one stage or
    two. Reaching the top stage pins the interval to the graduated value.

    Args:
        stage: Current stage
        interval_ms: Interval the card was last scheduled with
        strength: Current memory strength
        fast_answer: Whether the answer beat the fast-answer threshold
        balance: Game balance

    Returns:
        ReviewOutcome with the new stage, interval and strength
    """
    jump = balance.fast_stage_jump if fast_answer else balance.normal_stage_jump
    new_stage = min(balance.max_stage, clamp_stage(stage, balance) + jump)

    if new_stage >= balance.max_stage:
        next_interval = float(balance.graduated_interval_ms)
    else:
        next_interval = interval_ms * balance.stage_interval_growth

    new_strength = min(balance.max_strength, strength + balance.strength_increment)
    return ReviewOutcome(stage=new_stage, next_interval_ms=next_interval, strength=new_strength)


def on_miss(balance: GameBalance = DEFAULT_BALANCE) -> ReviewOutcome:
    """Grade a wrong answer or timeout: unconditional reset."""
    return ReviewOutcome(
        stage=balance.min_stage,
        next_interval_ms=float(balance.miss_interval_ms),
        strength=balance.baseline_strength,
    )


def is_fast_answer(
    response_time_ms: Optional[float],
    card_type: Union[CardType, str] = CardType.VOCABULARY,
    balance: GameBalance = DEFAULT_BALANCE
) -> bool:
    """
    Check whether a response counts as fast for its card type.

    Unknown response times are never fast.
    """
    if response_time_ms is None:
        return False
    key = card_type.value if isinstance(card_type, CardType) else str(card_type)
    threshold = balance.fast_answer_ms.get(key, balance.fast_answer_ms[CardType.VOCABULARY.value])
    return response_time_ms < threshold


def coerce_review_state(
    raw: Any,
    balance: GameBalance = DEFAULT_BALANCE
) -> Optional[ReviewState]:
    """
    Normalize a stored review state.

    Accepts a ReviewState or a mapping with the same keys. Anything that
    cannot be read as a review state is treated as "never reviewed" and
    yields None. A stage outside the ladder is clamped.

    Args:
        raw: Stored value (ReviewState, dict, or None)
        balance: Game balance

    Returns:
        A valid ReviewState or None
    """
    if raw is None:
        return None

    if isinstance(raw, ReviewState):
        fields = raw.__dict__
    elif isinstance(raw, Mapping):
        fields = raw
    else:
        return None

    try:
        last_reviewed_at = fields["last_reviewed_at"]
        next_review_at = fields["next_review_at"]
        strength = float(fields["memory_strength"])
        correct_count = int(fields.get("correct_count", 0) or 0)
        stage = fields["stage"]
    except (KeyError, TypeError, ValueError):
        return None

    if not isinstance(last_reviewed_at, datetime) or not isinstance(next_review_at, datetime):
        return None
    if math.isnan(strength) or strength < 0 or correct_count < 0:
        return None
    if next_review_at < last_reviewed_at:
        return None

    return ReviewState(
        stage=clamp_stage(stage, balance),
        last_reviewed_at=last_reviewed_at,
        next_review_at=next_review_at,
        memory_strength=min(strength, balance.max_strength),
        correct_count=correct_count,
    )


def apply_review(
    prior: Optional[ReviewState],
    correct: bool,
    now: datetime,
    fast_answer: bool = False,
    balance: GameBalance = DEFAULT_BALANCE
) -> ReviewState:
    """
    Produce the next review state for a card after an answer.

    A missing prior state means the card has never been reviewed: stage 1,
    zero strength, zero correct answers.

    Args:
        prior: Previous state, or None for a first review
        correct: Whether the answer was correct
        now: Time of the answer
        fast_answer: Whether a correct answer was fast
        balance: Game balance

    Returns:
        New ReviewState with last_reviewed_at = now
    """
    prior = coerce_review_state(prior, balance)
    stage = prior.stage if prior else balance.min_stage
    strength = prior.memory_strength if prior else balance.unseen_strength
    correct_count = prior.correct_count if prior else 0

    if correct:
        outcome = on_correct(
            stage,
            interval_for_stage(stage, balance),
            strength,
            fast_answer=fast_answer,
            balance=balance,
        )
        correct_count += 1
    else:
        outcome = on_miss(balance)

    return ReviewState(
        stage=outcome.stage,
        last_reviewed_at=now,
        next_review_at=now + timedelta(milliseconds=outcome.next_interval_ms),
        memory_strength=outcome.strength,
        correct_count=correct_count,
    )


def current_retention(state: Optional[ReviewState], now: datetime) -> float:
    """Retention of a card right now; 0.0 for a card never reviewed."""
    if state is None:
        return 0.0
    elapsed_days = max(0.0, (now - state.last_reviewed_at).total_seconds() * 1000 / MS_PER_DAY)
    return compute_retention(elapsed_days, state.memory_strength)


def is_due(state: Optional[ReviewState], now: datetime) -> bool:
    """A card is due when it was never reviewed or its review time has passed."""
    return state is None or state.next_review_at <= now
