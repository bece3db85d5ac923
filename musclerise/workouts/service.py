# -*- coding: utf-8 -*-
"""Server-side day cycle: lazy daily reset and authoritative workout completion."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from ..daykey import DayCycle
from ..errors import AlreadyCompletedError, NotFoundError, ValidationError
from ..plans.catalog import pin_snapshot, seed_workout_plans
from ..plans.models import DateWorkoutSnapshot, find_plan
from ..progress.history import close_day, history_entry_from_stats, upsert_history
from ..progress.stats import apply_completion, ensure_daily_stats, fresh_daily_stats, next_streak, workout_reward
from ..progress.tracker import complete_exercise, reset_plans
from ..users.models import UserDocument, UserView
from ..users.storage import UserStore
from .models import (
    TodayStats,
    UserPublic,
    WorkoutCompletionRequest,
    WorkoutExerciseInput,
    WorkoutRecord,
)

logger = logging.getLogger(__name__)


def new_user_document(now: datetime, cycle: DayCycle) -> UserDocument:
    stamp = now.isoformat()
    return UserDocument(
        plans=seed_workout_plans(),
        daily_stats=fresh_daily_stats(cycle.day_key(now), stamp),
        last_daily_reset=stamp,
    )


def user_view(user_row: Dict[str, Any], doc: UserDocument) -> UserView:
    return UserView.model_validate(
        {
            **doc.model_dump(),
            "id": user_row["id"],
            "username": user_row["username"],
            "created_at": user_row["created_at"],
        }
    )


def user_public(user_row: Dict[str, Any], doc: UserDocument) -> UserPublic:
    return UserPublic(
        id=user_row["id"],
        username=user_row["username"],
        coins=doc.coins,
        streak=doc.streak,
        total_workouts=doc.total_workouts,
    )


# ---- daily reset ----

def reset_document(doc: UserDocument, now: datetime, cycle: DayCycle) -> bool:
    """Zero the cycle if a boundary passed since the last reset. Returns True if it did."""
    if not cycle.needs_reset(doc.last_daily_reset, now):
        return False
    today = cycle.day_key(now)
    stamp = now.isoformat()
    if doc.daily_stats is not None and doc.daily_stats.date != today:
        doc.daily_history = close_day(doc.daily_history, doc.daily_stats)
    doc.plans = reset_plans(doc.plans or seed_workout_plans())
    doc.daily_stats = fresh_daily_stats(today, stamp)
    doc.last_daily_reset = stamp
    return True


def reset_if_needed(store: UserStore, user_id: str, now: datetime, cycle: DayCycle) -> Tuple[UserDocument, bool]:
    doc, was_reset = store.mutate(user_id, lambda d: reset_document(d, now, cycle))
    if was_reset:
        logger.info("Daily exercises reset for user %s (day %s)", user_id, cycle.day_key(now))
    return doc, was_reset


# ---- completion ----

def parse_completion_request(body: Any) -> WorkoutCompletionRequest:
    try:
        return WorkoutCompletionRequest.model_validate(body)
    except PydanticValidationError as exc:
        fields = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        raise ValidationError("Validation failed", fields=fields) from exc


def _last_activity_key(doc: UserDocument, cycle: DayCycle) -> Optional[str]:
    if not doc.workout_history:
        return None
    last = doc.workout_history[-1]
    return last.day_key or cycle.day_key_of(last.date)


def _guard_not_completed(doc: UserDocument, request: WorkoutCompletionRequest) -> None:
    if not request.plan_id:
        return
    plan = find_plan(doc.plans, request.plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {request.plan_id} not found")
    for item in request.exercises:
        exercise = plan.find_exercise(item.id)
        if exercise is None:
            raise NotFoundError(f"Exercise {item.id} not found in plan {request.plan_id}")
        if exercise.completed:
            raise AlreadyCompletedError(request.plan_id, item.id)


def _apply_completion(
    doc: UserDocument,
    request: WorkoutCompletionRequest,
    now: datetime,
    cycle: DayCycle,
) -> WorkoutRecord:
    reset_document(doc, now, cycle)
    _guard_not_completed(doc, request)

    today = cycle.day_key(now)
    plans = doc.plans
    recorded: List[WorkoutExerciseInput] = []
    total_calories = 0.0
    total_reps = 0
    for item in request.exercises:
        if request.plan_id:
            result = complete_exercise(plans, request.plan_id, item.id, item.completed_reps)
            plans = result.plans
            reps, calories = result.credited_reps, result.calories_added
        else:
            reps, calories = item.completed_reps, item.calories_burned or 0.0
        total_reps += reps
        total_calories += calories
        recorded.append(item.model_copy(update={"completed_reps": reps, "calories_burned": calories}))

    if request.plan_id and total_reps == 0:
        raise ValidationError("No reps to credit", fields=[{"loc": ["exercises"], "msg": "completedReps must be > 0"}])
    if not request.plan_id and total_calories == 0 and request.total_calories:
        total_calories = request.total_calories
    total_calories = round(total_calories, 6)

    streak = next_streak(doc.streak, _last_activity_key(doc, cycle), today)
    coins = workout_reward(total_calories)
    record = WorkoutRecord(
        id=f"workout_{uuid4().hex[:16]}",
        date=now.isoformat(),
        day_key=today,
        exercises=recorded,
        total_calories=total_calories,
        duration=request.duration,
        plan_id=request.plan_id,
        coins_earned=coins,
    )

    stats = ensure_daily_stats(doc.daily_stats, today, now.isoformat())
    stats = apply_completion(stats, calories=total_calories, reps=total_reps, count_workout=True)

    doc.plans = plans
    doc.workout_history.append(record)
    doc.coins += coins
    doc.streak = streak
    doc.total_workouts += 1
    doc.total_calories = round(doc.total_calories + total_calories, 6)
    doc.total_exercises += total_reps
    doc.daily_stats = stats
    doc.daily_history = upsert_history(doc.daily_history, history_entry_from_stats(stats))
    if request.plan_id:
        doc.date_workout_data_map = pin_snapshot(
            doc.date_workout_data_map,
            today,
            DateWorkoutSnapshot(plan_id=request.plan_id, plans=plans),
            replace=True,
        )
    return record


def complete_workout(
    store: UserStore,
    user_id: str,
    request: WorkoutCompletionRequest,
    now: datetime,
    cycle: DayCycle,
) -> Tuple[UserDocument, WorkoutRecord]:
    reset_if_needed(store, user_id, now, cycle)
    try:
        doc, record = store.mutate(user_id, lambda d: _apply_completion(d, request, now, cycle))
    except AlreadyCompletedError as exc:
        logger.warning("Completion rejected for user %s: %s", user_id, exc)
        raise
    logger.info(
        "Workout %s completed by %s: %s kcal, %s coins, streak %s",
        record.id,
        user_id,
        record.total_calories,
        record.coins_earned,
        doc.streak,
    )
    return doc, record


# ---- queries ----

def workout_history(doc: UserDocument) -> Tuple[List[WorkoutRecord], float]:
    ordered = sorted(doc.workout_history, key=lambda r: r.date, reverse=True)
    return ordered, round(sum(r.total_calories for r in doc.workout_history), 6)


def today_stats(doc: UserDocument, now: datetime, cycle: DayCycle) -> Tuple[str, TodayStats]:
    today = cycle.day_key(now)
    todays = [r for r in doc.workout_history if (r.day_key or cycle.day_key_of(r.date)) == today]
    duration = sum(r.duration or 0 for r in todays)
    stats = doc.daily_stats
    if stats is not None and stats.date == today:
        return today, TodayStats(
            workouts_completed=stats.workouts_count,
            total_calories=stats.calories,
            total_exercises=stats.exercises_completed,
            total_duration=duration,
        )
    return today, TodayStats(
        workouts_completed=len(todays),
        total_calories=round(sum(r.total_calories for r in todays), 6),
        total_exercises=sum(ex.completed_reps for r in todays for ex in r.exercises),
        total_duration=duration,
    )


def delete_workout(store: UserStore, user_id: str, workout_id: str) -> WorkoutRecord:
    def _remove(doc: UserDocument) -> WorkoutRecord:
        for idx, record in enumerate(doc.workout_history):
            if record.id == workout_id:
                break
        else:
            raise NotFoundError("Workout not found")
        removed = doc.workout_history.pop(idx)
        coins = removed.coins_earned if removed.coins_earned is not None else workout_reward(removed.total_calories)
        doc.coins = max(0, doc.coins - coins)
        doc.total_workouts = max(0, doc.total_workouts - 1)
        return removed

    _, removed = store.mutate(user_id, _remove)
    logger.info("Workout %s deleted for user %s", workout_id, user_id)
    return removed
