# -*- coding: utf-8 -*-
"""Client actions. One frozen dataclass per tag; payloads are checked on construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..daykey import parse_day_key
from ..errors import ValidationError
from ..plans.models import CustomExercise
from ..users.models import Rank


def _require(condition: bool, message: str, field_name: str) -> None:
    if not condition:
        raise ValidationError(message, fields=[{"field": field_name}])


def _check_day_key(value: str, field_name: str = "date") -> None:
    try:
        parse_day_key(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid day key: {value!r}", fields=[{"field": field_name}]) from exc


@dataclass(frozen=True)
class CompleteExercise:
    plan_id: str
    exercise_id: str
    reps: int

    def __post_init__(self) -> None:
        _require(bool(self.plan_id), "plan_id is required", "plan_id")
        _require(bool(self.exercise_id), "exercise_id is required", "exercise_id")
        _require(isinstance(self.reps, int) and self.reps >= 0, "reps must be a non-negative integer", "reps")


@dataclass(frozen=True)
class ResetTodayIfNeeded:
    pass


@dataclass(frozen=True)
class Hydrate:
    """Server user document (camelCase JSON) from ``/api/auth/me``."""

    user: Dict[str, Any]

    def __post_init__(self) -> None:
        _require(isinstance(self.user, dict), "user must be a mapping", "user")


@dataclass(frozen=True)
class LoadWorkoutData:
    """Totals from ``/api/workouts/today``."""

    day_key: str
    calories: float
    exercises_completed: int

    def __post_init__(self) -> None:
        _check_day_key(self.day_key, "day_key")
        _require(self.calories >= 0, "calories must be >= 0", "calories")
        _require(self.exercises_completed >= 0, "exercises_completed must be >= 0", "exercises_completed")


@dataclass(frozen=True)
class SelectPlan:
    plan_id: str

    def __post_init__(self) -> None:
        _require(bool(self.plan_id), "plan_id is required", "plan_id")


@dataclass(frozen=True)
class UpdateCustomExercises:
    exercises: Tuple[CustomExercise, ...] = field(default_factory=tuple)
    name: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            coerced = tuple(
                e if isinstance(e, CustomExercise) else CustomExercise.model_validate(e) for e in self.exercises
            )
        except PydanticValidationError as exc:
            raise ValidationError("Invalid custom exercise", fields=[{"field": "exercises"}]) from exc
        object.__setattr__(self, "exercises", coerced)


@dataclass(frozen=True)
class AdminSetDate:
    date: str

    def __post_init__(self) -> None:
        _check_day_key(self.date)


@dataclass(frozen=True)
class AdminNextDay:
    pass


@dataclass(frozen=True)
class AdminPrevDay:
    pass


@dataclass(frozen=True)
class AdminResetDate:
    pass


@dataclass(frozen=True)
class SetRank:
    position: int
    total: int

    def __post_init__(self) -> None:
        _require(self.total >= 1, "total must be >= 1", "total")
        _require(1 <= self.position <= self.total, "position must be within 1..total", "position")

    def to_rank(self) -> Rank:
        return Rank(position=self.position, total=self.total)


@dataclass(frozen=True)
class Logout:
    pass
