# -*- coding: utf-8 -*-
"""Plan domain: Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

CUSTOM_PLAN_ID = "custom-plan"


class CamelModel(BaseModel):
    """Python attributes in snake_case, JSON keys in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Exercise(CamelModel):
    id: str
    name: str
    calories_per_rep: float = Field(0.5, ge=0)
    target_reps: int = Field(10, ge=0)
    completed_reps: int = Field(0, ge=0)
    completed: bool = False

    @model_validator(mode="after")
    def _clamp_progress(self) -> "Exercise":
        # Stored documents may predate the clamp; normalize on load.
        if self.completed_reps > self.target_reps:
            self.completed_reps = self.target_reps
        self.completed = self.completed_reps >= self.target_reps
        return self

    @property
    def remaining_reps(self) -> int:
        return self.target_reps - self.completed_reps


class WorkoutPlan(CamelModel):
    id: str
    name: str
    exercises: List[Exercise] = Field(default_factory=list)

    def find_exercise(self, exercise_id: str) -> Optional[Exercise]:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None


class CustomExercise(CamelModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    reps: Optional[int] = Field(default=None, ge=1)
    qty: Optional[int] = Field(default=None, ge=1)


class DateWorkoutSnapshot(CamelModel):
    plan_id: str
    plans: List[WorkoutPlan] = Field(default_factory=list)


def find_plan(plans: List[WorkoutPlan], plan_id: str) -> Optional[WorkoutPlan]:
    for plan in plans:
        if plan.id == plan_id:
            return plan
    return None
