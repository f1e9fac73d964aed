"""Leaderboard ordering.

Runs are ranked by score descending; equal scores are ordered by elapsed
time ascending (the faster run wins). Clients cannot change this order.
"""
from typing import Iterable, List, Optional, Union

from closer.constants import (
    RANKING_DEFAULT_LIMIT,
    RANKING_MIN_LIMIT,
    RANKING_MAX_LIMIT
)
from closer.models import RunResult


def leaderboard_key(result: RunResult):
    return (-result.score, result.elapsed_ms)


def clamp_limit(
    raw: Optional[Union[int, str]],
    default: int = RANKING_DEFAULT_LIMIT,
    low: int = RANKING_MIN_LIMIT,
    high: int = RANKING_MAX_LIMIT
) -> int:
    """
    Parse and bound a requested list size.

    Missing or unparsable values use the default; parsed values are forced
    into [low, high].
    """
    try:
        value = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        value = default
    return min(high, max(low, value))


def rank_results(results: Iterable[RunResult], limit: Optional[int] = None) -> List[RunResult]:
    """
    Order runs for display.

    Args:
        results: Runs in any order
        limit: Maximum number returned (None for all)

    Returns:
        Runs sorted by score desc, then elapsed time asc
    """
    ordered = sorted(results, key=leaderboard_key)
    return ordered if limit is None else ordered[:limit]
