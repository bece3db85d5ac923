# -*- coding: utf-8 -*-
"""Workout plan catalog, custom overlay and per-day plan pinning."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..daykey import parse_day_key
from .models import CUSTOM_PLAN_ID, CustomExercise, DateWorkoutSnapshot, Exercise, WorkoutPlan

DEFAULT_CUSTOM_PLAN_NAME = "Custom Plan"
CUSTOM_CALORIES_PER_REP = 0.5
CUSTOM_DEFAULT_REPS = 10

# (plan id, display name, [(exercise id, name, kcal per rep, target reps), ...])
_CATALOG = (
    (
        "beginner",
        "Beginner Level",
        [
            ("pushups", "Push-ups", 0.5, 10),
            ("squats", "Squats", 0.4, 15),
            ("plank", "Plank (sec)", 0.2, 30),
            ("wall-sits", "Wall Sits (sec)", 0.3, 20),
            ("leg-raises", "Leg Raises", 0.4, 8),
        ],
    ),
    (
        "middle",
        "Middle Level",
        [
            ("pushups", "Push-ups", 0.6, 25),
            ("squats", "Squats", 0.5, 35),
            ("lunges", "Lunges", 0.7, 20),
            ("mountain-climbers", "Mountain Climbers", 0.8, 30),
            ("plank", "Plank (sec)", 0.3, 60),
            ("jumping-jacks", "Jumping Jacks", 0.3, 50),
            ("russian-twists", "Russian Twists", 0.4, 25),
        ],
    ),
    (
        "hardcore",
        "Hardcore Level",
        [
            ("burpees", "Burpees", 1.2, 20),
            ("diamond-pushups", "Diamond Push-ups", 0.9, 15),
            ("jump-squats", "Jump Squats", 0.8, 25),
            ("pike-pushups", "Pike Push-ups", 0.8, 12),
            ("bear-crawls", "Bear Crawls", 1.0, 20),
            ("single-leg-glute-bridge", "Single Leg Glute Bridge", 0.6, 15),
            ("bicycle-crunches", "Bicycle Crunches", 0.5, 40),
            ("high-knees", "High Knees", 0.7, 50),
        ],
    ),
)

CATALOG_PLAN_IDS = tuple(plan_id for plan_id, _, _ in _CATALOG)


def seed_workout_plans() -> List[WorkoutPlan]:
    """Fresh, zero-progress copies of the fixed catalog."""
    return [
        WorkoutPlan(
            id=plan_id,
            name=name,
            exercises=[
                Exercise(id=ex_id, name=ex_name, calories_per_rep=kcal, target_reps=target)
                for ex_id, ex_name, kcal, target in exercises
            ],
        )
        for plan_id, name, exercises in _CATALOG
    ]


def _coerce_custom(item: Union[CustomExercise, Mapping[str, Any]]) -> CustomExercise:
    if isinstance(item, CustomExercise):
        return item
    return CustomExercise.model_validate(item)


def build_custom_plan(
    custom_exercises: Iterable[Union[CustomExercise, Mapping[str, Any]]],
    name: Optional[str] = None,
) -> WorkoutPlan:
    exercises: List[Exercise] = []
    for raw in custom_exercises:
        item = _coerce_custom(raw)
        exercises.append(
            Exercise(
                id=item.id or item.name,
                name=item.name,
                calories_per_rep=CUSTOM_CALORIES_PER_REP,
                target_reps=item.reps or item.qty or CUSTOM_DEFAULT_REPS,
            )
        )
    return WorkoutPlan(id=CUSTOM_PLAN_ID, name=name or DEFAULT_CUSTOM_PLAN_NAME, exercises=exercises)


def select_plan_for_date(day_key: str, plans: Sequence[WorkoutPlan]) -> str:
    """Deterministic rotation: day of month picks the plan index."""
    if not plans:
        raise ValueError("plan catalog is empty")
    index = (parse_day_key(day_key).day - 1) % len(plans)
    return plans[index].id


def plans_with_overlay(
    custom_exercises: Optional[Sequence[Any]] = None,
    custom_plan_name: Optional[str] = None,
) -> List[WorkoutPlan]:
    plans = seed_workout_plans()
    if custom_exercises:
        plans.append(build_custom_plan(custom_exercises, custom_plan_name))
    return plans


def workout_data_for_date(
    day_key: str,
    snapshots: Optional[Mapping[str, DateWorkoutSnapshot]] = None,
    *,
    custom_exercises: Optional[Sequence[Any]] = None,
    custom_plan_name: Optional[str] = None,
    selected_plan_id: Optional[str] = None,
) -> DateWorkoutSnapshot:
    """Plans shown on ``day_key``.

    A day that already has a pinned snapshot keeps it, even if the rotation or
    the custom plan has changed since.
    """
    if snapshots and day_key in snapshots:
        return snapshots[day_key]

    seeded = seed_workout_plans()
    plan_id = select_plan_for_date(day_key, seeded)
    plans = seeded
    if custom_exercises:
        plans = seeded + [build_custom_plan(custom_exercises, custom_plan_name)]
        if selected_plan_id == CUSTOM_PLAN_ID:
            plan_id = CUSTOM_PLAN_ID
    return DateWorkoutSnapshot(plan_id=plan_id, plans=plans)


def pin_snapshot(
    snapshots: Optional[Mapping[str, DateWorkoutSnapshot]],
    day_key: str,
    snapshot: DateWorkoutSnapshot,
    *,
    replace: bool = False,
) -> Dict[str, DateWorkoutSnapshot]:
    """Return a new mapping with ``day_key`` pinned to ``snapshot``.

    An existing pin is kept unless ``replace`` is set; the day's own progress
    updates use ``replace`` so the pin carries today's completion state.
    """
    pinned = dict(snapshots or {})
    if replace or day_key not in pinned:
        pinned[day_key] = snapshot
    return pinned
