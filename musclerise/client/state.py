# -*- coding: utf-8 -*-
"""Client working copy of the day-cycle state."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from ..daykey import DEFAULT_DAY_BOUNDARY_HOUR, TzLike, resolve_day_key
from ..plans.catalog import seed_workout_plans, workout_data_for_date
from ..plans.models import CamelModel, CustomExercise, DateWorkoutSnapshot, WorkoutPlan
from ..progress.models import HistoryEntry
from ..users.models import Rank

# The running total for the current day has the same shape as a ledger row.
StatsEntry = HistoryEntry


class UserProfile(CamelModel):
    id: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None
    custom_exercises: List[CustomExercise] = Field(default_factory=list)
    custom_plan_name: Optional[str] = None
    plan_id: Optional[str] = None


class AppState(CamelModel):
    user: Optional[UserProfile] = None
    coins: int = 0
    streak: int = 0
    workout_plan_id: str
    workout_plans: List[WorkoutPlan] = Field(default_factory=seed_workout_plans)
    today: StatsEntry
    history: List[StatsEntry] = Field(default_factory=list)
    rank: Rank = Field(default_factory=lambda: Rank(position=1, total=1))
    admin_date_override: Optional[str] = None
    date_workout_data_map: Dict[str, DateWorkoutSnapshot] = Field(default_factory=dict)


def initial_state(
    now: datetime,
    *,
    boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: TzLike = None,
    override: Optional[str] = None,
    cached: Optional[AppState] = None,
) -> AppState:
    """Fresh state, or the cached one carried into the current day."""
    day_key = resolve_day_key(now, override, boundary_hour=boundary_hour, tz=tz)
    snapshots = dict(cached.date_workout_data_map) if cached else {}
    profile = cached.user if cached else None
    data = workout_data_for_date(
        day_key,
        snapshots,
        custom_exercises=profile.custom_exercises if profile else None,
        custom_plan_name=profile.custom_plan_name if profile else None,
        selected_plan_id=profile.plan_id if profile else None,
    )
    if cached is not None and cached.today.date == day_key:
        today = cached.today
    else:
        today = StatsEntry(date=day_key)
    return AppState(
        user=profile,
        coins=cached.coins if cached else 0,
        streak=cached.streak if cached else 0,
        workout_plan_id=data.plan_id,
        workout_plans=data.plans,
        today=today,
        history=list(cached.history) if cached else [],
        admin_date_override=override,
        date_workout_data_map=snapshots,
    )
