# -*- coding: utf-8 -*-
"""Workout domain: Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from ..plans.models import CamelModel


class WorkoutExerciseInput(CamelModel):
    id: str = Field(..., min_length=1)
    name: str
    target_reps: int = Field(..., ge=0)
    completed_reps: int = Field(..., ge=0)
    calories_burned: Optional[float] = Field(default=None, ge=0)


class WorkoutCompletionRequest(CamelModel):
    exercises: List[WorkoutExerciseInput] = Field(..., min_length=1)
    total_calories: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0, description="seconds")
    plan_id: Optional[str] = None


class WorkoutRecord(CamelModel):
    id: str
    date: str = Field(..., description="ISO8601 timestamp of completion")
    day_key: Optional[str] = Field(default=None, description="YYYY-MM-DD cycle the workout counted towards")
    exercises: List[WorkoutExerciseInput] = Field(default_factory=list)
    total_calories: float = 0.0
    duration: Optional[int] = None
    plan_id: Optional[str] = None
    coins_earned: Optional[int] = None


class UserPublic(CamelModel):
    id: str
    username: str
    coins: int = 0
    streak: int = 0
    total_workouts: int = 0


class WorkoutCompletionResponse(CamelModel):
    message: str = "Workout completed successfully"
    workout_id: str
    coins_earned: int
    total_calories: float
    streak: int
    exercises: List[WorkoutExerciseInput]
    user: Optional[UserPublic] = None


class WorkoutHistoryResponse(CamelModel):
    history: List[WorkoutRecord]
    total_workouts: int
    total_calories: float


class TodayStats(CamelModel):
    workouts_completed: int = 0
    total_calories: float = 0.0
    total_exercises: int = 0
    total_duration: int = 0


class TodayStatsResponse(CamelModel):
    day_key: str
    today_stats: TodayStats
