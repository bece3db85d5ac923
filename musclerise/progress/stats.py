# -*- coding: utf-8 -*-
"""Daily totals, streak rules and workout rewards."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from ..daykey import previous_day_key
from .models import DailyStats

MIN_WORKOUT_REWARD = 5
CALORIES_PER_COIN = 10


def fresh_daily_stats(day_key: str, reset_at: Optional[str] = None) -> DailyStats:
    return DailyStats(date=day_key, last_reset_at=reset_at)


def ensure_daily_stats(stats: Optional[DailyStats], day_key: str, reset_at: Optional[str] = None) -> DailyStats:
    """Stats for ``day_key``; anything recorded for another day starts over."""
    if stats is None or stats.date != day_key:
        return fresh_daily_stats(day_key, reset_at)
    return stats


def apply_completion(
    stats: DailyStats,
    *,
    calories: float,
    reps: int,
    count_workout: bool = False,
) -> DailyStats:
    return stats.model_copy(
        update={
            "calories": round(stats.calories + calories, 6),
            "exercises_completed": stats.exercises_completed + reps,
            "workouts_count": stats.workouts_count + (1 if count_workout else 0),
        }
    )


def next_streak(current: int, last_activity_key: Optional[str], today_key: str) -> int:
    if not last_activity_key:
        return 1
    if last_activity_key == today_key:
        return max(current, 1)
    if last_activity_key == previous_day_key(today_key):
        return current + 1
    return 1


def streak_from_day_keys(day_keys: Iterable[str]) -> int:
    """Consecutive-day run ending at the most recent activity day."""
    days = sorted(set(k for k in day_keys if k), reverse=True)
    if not days:
        return 0
    streak = 1
    for newer, older in zip(days, days[1:]):
        if previous_day_key(newer) != older:
            break
        streak += 1
    return streak


def workout_reward(total_calories: float) -> int:
    return max(MIN_WORKOUT_REWARD, int(math.floor(total_calories / CALORIES_PER_COIN)))
