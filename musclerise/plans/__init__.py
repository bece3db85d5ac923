# -*- coding: utf-8 -*-
"""Workout plans: fixed catalog, custom overlay and per-day pinning."""

from .catalog import (
    CATALOG_PLAN_IDS,
    build_custom_plan,
    pin_snapshot,
    plans_with_overlay,
    seed_workout_plans,
    select_plan_for_date,
    workout_data_for_date,
)
from .models import CUSTOM_PLAN_ID, CustomExercise, DateWorkoutSnapshot, Exercise, WorkoutPlan, find_plan

__all__ = [
    'CATALOG_PLAN_IDS',
    'CUSTOM_PLAN_ID',
    'CustomExercise',
    'DateWorkoutSnapshot',
    'Exercise',
    'WorkoutPlan',
    'build_custom_plan',
    'find_plan',
    'pin_snapshot',
    'plans_with_overlay',
    'seed_workout_plans',
    'select_plan_for_date',
    'workout_data_for_date',
]
