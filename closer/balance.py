"""Game-balance configuration.

Every tunable threshold and multiplier of the engine lives on
:class:`GameBalance`. Services take a ``balance`` argument defaulting to
:data:`DEFAULT_BALANCE`, so tests and operators can swap in a different
tuning without touching formula code.

Overrides can be loaded from a JSON file named by the ``BALANCE_FILE``
environment variable::

    {"wrong_penalty_sec": 4, "fever_entry_combo": 20}
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from closer import constants
from closer.config import settings
from closer.logging_config import get_logger

logger = get_logger(__name__)


class GameBalance(BaseModel):
    """Immutable bundle of game-balance values."""

    model_config = ConfigDict(frozen=True)

    # Retention model
    min_stage: int = constants.MIN_STAGE
    max_stage: int = constants.MAX_STAGE
    stage_interval_growth: float = constants.STAGE_INTERVAL_GROWTH
    graduated_interval_ms: int = constants.GRADUATED_INTERVAL_MS
    miss_interval_ms: int = constants.MISS_INTERVAL_MS
    baseline_strength: float = constants.BASELINE_STRENGTH
    unseen_strength: float = constants.UNSEEN_STRENGTH
    strength_increment: float = constants.STRENGTH_INCREMENT
    max_strength: float = constants.MAX_STRENGTH
    fast_stage_jump: int = constants.FAST_STAGE_JUMP
    normal_stage_jump: int = constants.NORMAL_STAGE_JUMP
    fast_answer_ms: Dict[str, int] = constants.FAST_ANSWER_MS

    # Stage ladder
    stage_base_interval_ms: int = constants.STAGE_BASE_INTERVAL_MS
    stage_multipliers: Dict[int, float] = constants.STAGE_MULTIPLIERS
    difficulty_rarity: Dict[str, str] = constants.DIFFICULTY_RARITY

    # Scoring
    rarity_base_points: Dict[str, int] = constants.RARITY_BASE_POINTS
    combo_divisor: float = constants.COMBO_DIVISOR
    speed_bonus_max: float = constants.SPEED_BONUS_MAX
    rank_s_min_score: int = constants.RANK_S_MIN_SCORE
    rank_s_min_combo: int = constants.RANK_S_MIN_COMBO
    rank_a_min_score: int = constants.RANK_A_MIN_SCORE
    rank_a_min_correct_rate: float = constants.RANK_A_MIN_CORRECT_RATE
    rank_b_min_score: int = constants.RANK_B_MIN_SCORE

    # Survival clock
    initial_survival_sec: float = constants.INITIAL_SURVIVAL_SEC
    max_survival_sec: float = constants.MAX_SURVIVAL_SEC
    correct_add_sec: float = constants.CORRECT_ADD_SEC
    combo_bonus_sec: float = constants.COMBO_BONUS_SEC
    combo_bonus_interval: int = constants.COMBO_BONUS_INTERVAL
    wrong_penalty_sec: float = constants.WRONG_PENALTY_SEC
    skip_penalty_sec: float = constants.SKIP_PENALTY_SEC
    fever_entry_combo: int = constants.FEVER_ENTRY_COMBO
    fever_duration_sec: float = constants.FEVER_DURATION_SEC
    fever_bar_duration_ms: int = constants.FEVER_BAR_DURATION_MS
    rank_time_to_edge_sec: Dict[str, float] = constants.RANK_TIME_TO_EDGE_SEC
    speed_steps: Tuple[Tuple[int, float], ...] = constants.SPEED_STEPS
    double_score_combo: int = constants.DOUBLE_SCORE_COMBO
    question_timeout_ms: Dict[str, int] = constants.QUESTION_TIMEOUT_MS

    # Selection
    weak_min_samples: int = constants.WEAK_MIN_SAMPLES
    weak_accuracy_threshold: float = constants.WEAK_ACCURACY_THRESHOLD
    weak_max_categories: int = constants.WEAK_MAX_CATEGORIES
    review_fallback_size: int = constants.REVIEW_FALLBACK_SIZE

    # Free play quota
    free_trial_days: int = constants.FREE_TRIAL_DAYS
    daily_free_plays: int = constants.DAILY_FREE_PLAYS

    @field_validator("fast_answer_ms", "question_timeout_ms", mode="after")
    @classmethod
    def keep_default_card_types(cls, v, info):
        """Card types missing from an override keep their default value."""
        defaults = cls.model_fields[info.field_name].default
        return {**defaults, **v}


DEFAULT_BALANCE = GameBalance()
"""Balance used when callers do not pass their own."""


def load_balance(path: Optional[str] = None) -> GameBalance:
    """Build a GameBalance from a JSON override file.

    Each file is read once per process; later calls with the same path
    return the cached balance.

    Args:
        path: JSON file with field overrides. Defaults to settings.BALANCE_FILE.

    Returns:
        DEFAULT_BALANCE when no file is configured, otherwise a new
        GameBalance with the overrides applied.

    Raises:
        FileNotFoundError: If the configured file does not exist
        pydantic.ValidationError: If an override has the wrong type
    """
    path = path or settings.BALANCE_FILE
    if not path:
        return DEFAULT_BALANCE
    return _load_balance_file(str(path))


@lru_cache(maxsize=None)
def _load_balance_file(path: str) -> GameBalance:
    overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    balance = GameBalance(**{**DEFAULT_BALANCE.model_dump(), **overrides})
    logger.info(f"Loaded game balance overrides from {path}: {sorted(overrides)}")
    return balance
