"""Free-play quota.

New learners play without limit for their first week; after that they get
one free play per day. The engine itself never consults this: the session
host decides whether to start a session.
"""
from datetime import datetime
from typing import Optional

from closer.balance import DEFAULT_BALANCE, GameBalance
from closer.models import PlayQuota


def day_key(now: datetime) -> str:
    return now.date().isoformat()


def within_free_trial(
    quota: Optional[PlayQuota],
    now: datetime,
    balance: GameBalance = DEFAULT_BALANCE
) -> bool:
    """True while fewer than free_trial_days have passed since first use."""
    if quota is None or quota.first_use_at is None:
        return True
    days_since_first = (now - quota.first_use_at).total_seconds() / 86400
    return days_since_first < balance.free_trial_days


def plays_today(quota: Optional[PlayQuota], now: datetime) -> int:
    if quota is None or quota.play_date != day_key(now):
        return 0
    return quota.play_count


def can_play_free(
    quota: Optional[PlayQuota],
    now: datetime,
    balance: GameBalance = DEFAULT_BALANCE
) -> bool:
    """
    Decide whether a free session may start.

    Args:
        quota: Stored quota (None for a brand-new learner)
        now: Current time
        balance: Game balance

    Returns:
        True during the trial, otherwise while today's plays are below the
        daily allowance
    """
    if within_free_trial(quota, now, balance):
        return True
    return plays_today(quota, now) < balance.daily_free_plays


def register_play(quota: Optional[PlayQuota], now: datetime) -> PlayQuota:
    """Record one play. The first call also stamps the first-use time."""
    first_use_at = quota.first_use_at if quota and quota.first_use_at else now
    return PlayQuota(
        first_use_at=first_use_at,
        play_date=day_key(now),
        play_count=plays_today(quota, now) + 1,
    )
