# -*- coding: utf-8 -*-
"""Server-side merge of client write-behind pushes into the user document."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..plans.catalog import build_custom_plan, pin_snapshot
from ..plans.models import CUSTOM_PLAN_ID, Exercise, WorkoutPlan, find_plan
from ..progress.history import history_entry_from_stats, upsert_history
from .models import UserDocument, UserSyncRequest

SYNC_KEY_MEMORY = 32


def _merge_exercise(server: Exercise, client: Optional[Exercise]) -> Exercise:
    if client is None:
        return server
    reps = min(server.target_reps, max(server.completed_reps, client.completed_reps))
    if reps == server.completed_reps:
        return server
    return server.model_copy(update={"completed_reps": reps, "completed": reps >= server.target_reps})


def merge_plan_progress(server_plans: List[WorkoutPlan], client_plans: List[WorkoutPlan]) -> List[WorkoutPlan]:
    """Progress only moves forward and never past the server's own targets."""
    merged: List[WorkoutPlan] = []
    for plan in server_plans:
        other = find_plan(client_plans, plan.id)
        if other is None:
            merged.append(plan)
            continue
        exercises = [_merge_exercise(ex, other.find_exercise(ex.id)) for ex in plan.exercises]
        merged.append(plan.model_copy(update={"exercises": exercises}))
    return merged


def _apply_custom_plan(doc: UserDocument) -> None:
    plans = [p for p in doc.plans if p.id != CUSTOM_PLAN_ID]
    if doc.custom_exercises:
        fresh = build_custom_plan(doc.custom_exercises, doc.custom_plan_name)
        existing = find_plan(doc.plans, CUSTOM_PLAN_ID)
        if existing is not None:
            # Same exercise list keeps today's progress.
            same = [(e.id, e.target_reps) for e in existing.exercises] == [
                (e.id, e.target_reps) for e in fresh.exercises
            ]
            if same:
                fresh = existing.model_copy(update={"name": fresh.name})
        plans.append(fresh)
    doc.plans = plans


def merge_sync(
    doc: UserDocument,
    request: UserSyncRequest,
    *,
    server_today: str,
    idempotency_key: Optional[str] = None,
) -> bool:
    """Apply a client push. Returns False for a replayed idempotency key.

    The last ``SYNC_KEY_MEMORY`` keys are remembered, so a late retry of an
    older push cannot overwrite what a newer push already wrote.
    """
    if idempotency_key and idempotency_key in doc.recent_sync_keys:
        return False

    if request.custom_plan_name is not None:
        doc.custom_plan_name = request.custom_plan_name or None
    if request.custom_exercises is not None:
        doc.custom_exercises = list(request.custom_exercises)
        if doc.custom_exercises:
            doc.current_plan_id = CUSTOM_PLAN_ID
    if request.custom_exercises is not None or request.custom_plan_name is not None:
        _apply_custom_plan(doc)

    if request.plan_id:
        doc.plan_id = request.plan_id
        doc.current_plan_id = request.plan_id

    same_day = request.day_key == server_today and (
        doc.daily_stats is not None and doc.daily_stats.date == server_today
    )
    if same_day and request.user_plans is not None:
        doc.plans = merge_plan_progress(doc.plans, request.user_plans)
    if same_day and doc.daily_stats is not None:
        stats = doc.daily_stats
        updates: Dict[str, object] = {}
        if request.today_calories is not None and request.today_calories > stats.calories:
            updates["calories"] = request.today_calories
        if request.today_exercises is not None and request.today_exercises > stats.exercises_completed:
            updates["exercises_completed"] = request.today_exercises
        if updates:
            doc.daily_stats = stats.model_copy(update=updates)
            doc.daily_history = upsert_history(doc.daily_history, history_entry_from_stats(doc.daily_stats))

    if request.daily_history:
        known = {entry.date for entry in doc.daily_history}
        for entry in request.daily_history:
            if entry.date not in known and entry.date != server_today:
                doc.daily_history = upsert_history(doc.daily_history, entry)

    if request.date_workout_data_map:
        pinned = doc.date_workout_data_map
        for day_key, snapshot in request.date_workout_data_map.items():
            pinned = pin_snapshot(pinned, day_key, snapshot)
        doc.date_workout_data_map = pinned

    if idempotency_key:
        doc.recent_sync_keys = (doc.recent_sync_keys + [idempotency_key])[-SYNC_KEY_MEMORY:]
    return True
