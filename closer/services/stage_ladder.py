"""Memory stage ladder and difficulty rarity tiers.

Stages run from 1 (new) to 5 (mastered). Each stage maps to a review
interval that grows roughly by an order of magnitude per step:

    stage  multiplier  interval (base = 12h)
    1      0.5         6h
    2      1           12h
    3      2.5         30h
    4      7           3.5d
    5      30          15d

Out-of-range stages are clamped into the ladder instead of raising.
"""
from enum import Enum
from typing import Any, Optional

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.constants import STAGE_LABELS


class Rarity(str, Enum):
    """Base-point tier of a card, from most common to rarest."""
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


def clamp_stage(stage: Any, balance: GameBalance = DEFAULT_BALANCE) -> int:
    """
    Force a stage value into the ladder.

    Non-numeric values fall back to the lowest stage.

    Args:
        stage: Raw stage value
        balance: Game balance providing the stage bounds

    Returns:
        Integer stage within [min_stage, max_stage]
    """
    try:
        value = int(stage)
    except (TypeError, ValueError):
        return balance.min_stage
    return max(balance.min_stage, min(value, balance.max_stage))


def interval_for_stage(stage: Any, balance: GameBalance = DEFAULT_BALANCE) -> float:
    """
    Review interval for a stage, in milliseconds.

    Args:
        stage: Memory stage (clamped into range)
        balance: Game balance providing base interval and multipliers

    Returns:
        base_interval * multiplier[stage]
    """
    level = clamp_stage(stage, balance)
    return balance.stage_base_interval_ms * balance.stage_multipliers[level]


def stage_label(stage: Any, balance: GameBalance = DEFAULT_BALANCE) -> str:
    """Display label for a stage."""
    return STAGE_LABELS[clamp_stage(stage, balance)]


def rarity_from_difficulty(
    difficulty: Optional[str],
    balance: GameBalance = DEFAULT_BALANCE
) -> Rarity:
    """
    Derive a card's rarity from its authored difficulty label.

    "900" is RARE and "700" is UNCOMMON. Anything else, including a missing
    or unknown label, is COMMON.
    """
    if difficulty is None:
        return Rarity.COMMON
    name = balance.difficulty_rarity.get(str(difficulty).strip())
    return Rarity(name) if name else Rarity.COMMON
