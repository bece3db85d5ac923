# -*- coding: utf-8 -*-
"""Per-exercise completion state machine.

``complete_exercise`` is the only transition that moves ``completed_reps``
forward; ``reset_plans`` is the daily rewind. Both return new objects and
leave their inputs untouched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

from ..errors import NotFoundError
from ..plans.models import Exercise, WorkoutPlan

# Float products like 0.7 * 10 land a hair above the integer; round before ceil.
_CALORIE_PRECISION = 6


@dataclass(frozen=True)
class CompletionResult:
    plans: List[WorkoutPlan]
    exercise: Exercise
    credited_reps: int
    calories_added: float
    coins_added: int
    already_completed: bool

    @property
    def changed(self) -> bool:
        return self.credited_reps > 0


def credit_reps(exercise: Exercise, requested_reps: int) -> int:
    return max(0, min(int(requested_reps), exercise.target_reps - exercise.completed_reps))


def calories_for(exercise: Exercise, reps: int) -> float:
    return round(reps * exercise.calories_per_rep, _CALORIE_PRECISION)


def coins_for_calories(calories: float) -> int:
    return int(math.ceil(round(calories, _CALORIE_PRECISION)))


def complete_exercise(
    plans: Sequence[WorkoutPlan],
    plan_id: str,
    exercise_id: str,
    requested_reps: int,
) -> CompletionResult:
    plan_index = next((i for i, p in enumerate(plans) if p.id == plan_id), None)
    if plan_index is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    plan = plans[plan_index]
    ex_index = next((i for i, e in enumerate(plan.exercises) if e.id == exercise_id), None)
    if ex_index is None:
        raise NotFoundError(f"Exercise {exercise_id} not found in plan {plan_id}")

    current = plan.exercises[ex_index]
    credited = credit_reps(current, requested_reps)
    done_reps = current.completed_reps + credited
    updated = current.model_copy(
        update={"completed_reps": done_reps, "completed": done_reps >= current.target_reps}
    )
    exercises = list(plan.exercises)
    exercises[ex_index] = updated
    new_plans = list(plans)
    new_plans[plan_index] = plan.model_copy(update={"exercises": exercises})

    calories = calories_for(current, credited)
    return CompletionResult(
        plans=new_plans,
        exercise=updated,
        credited_reps=credited,
        calories_added=calories,
        coins_added=coins_for_calories(calories),
        already_completed=current.completed,
    )


def reset_plans(plans: Sequence[WorkoutPlan]) -> List[WorkoutPlan]:
    return [
        plan.model_copy(
            update={
                "exercises": [
                    e.model_copy(update={"completed_reps": 0, "completed": e.target_reps <= 0})
                    for e in plan.exercises
                ]
            }
        )
        for plan in plans
    ]
