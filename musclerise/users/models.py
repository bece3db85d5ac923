# -*- coding: utf-8 -*-
"""User document: Pydantic models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from ..plans.catalog import seed_workout_plans
from ..plans.models import CamelModel, CustomExercise, DateWorkoutSnapshot, WorkoutPlan
from ..progress.models import DailyStats, HistoryEntry
from ..workouts.models import WorkoutRecord


class UserDocument(CamelModel):
    """Authoritative per-user state, read and written as a whole."""

    plans: List[WorkoutPlan] = Field(default_factory=seed_workout_plans)
    current_plan_id: Optional[str] = None
    plan_id: Optional[str] = None
    custom_exercises: List[CustomExercise] = Field(default_factory=list)
    custom_plan_name: Optional[str] = None
    daily_stats: Optional[DailyStats] = None
    last_daily_reset: Optional[str] = None
    workout_history: List[WorkoutRecord] = Field(default_factory=list)
    daily_history: List[HistoryEntry] = Field(default_factory=list)
    coins: int = Field(0, ge=0)
    streak: int = Field(0, ge=0)
    total_workouts: int = Field(0, ge=0)
    total_calories: float = Field(0.0, ge=0)
    total_exercises: int = Field(0, ge=0)
    date_workout_data_map: Dict[str, DateWorkoutSnapshot] = Field(default_factory=dict)
    recent_sync_keys: List[str] = Field(default_factory=list, description="newest last")


class UserView(UserDocument):
    """Credential-free user view returned to clients."""

    id: str
    username: str
    created_at: str


class UserSyncRequest(CamelModel):
    day_key: Optional[str] = Field(default=None, description="client's current day key")
    plan_id: Optional[str] = None
    user_plans: Optional[List[WorkoutPlan]] = None
    custom_exercises: Optional[List[CustomExercise]] = None
    custom_plan_name: Optional[str] = None
    daily_history: Optional[List[HistoryEntry]] = None
    date_workout_data_map: Optional[Dict[str, DateWorkoutSnapshot]] = None
    today_calories: Optional[float] = Field(default=None, ge=0)
    today_exercises: Optional[int] = Field(default=None, ge=0)


class UserSyncResponse(CamelModel):
    message: str
    applied: bool
    user: UserView


class Rank(CamelModel):
    position: int
    total: int


class RankResponse(CamelModel):
    rank: Rank


class UserStatsResponse(CamelModel):
    total_workouts: int
    total_exercises: int
    total_calories: float
    average_calories_per_day: int
    streak: int
    last_workout_date: Optional[str] = None
