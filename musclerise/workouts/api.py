# -*- coding: utf-8 -*-
"""Workout domain: API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from ..auth.security import get_current_user
from ..deps import Clock, get_clock, get_store
from ..users.storage import UserStore
from .models import (
    TodayStatsResponse,
    WorkoutCompletionResponse,
    WorkoutHistoryResponse,
)
from .service import (
    complete_workout,
    delete_workout,
    parse_completion_request,
    reset_if_needed,
    today_stats,
    user_public,
    workout_history,
)

router = APIRouter(prefix="/api/workouts", tags=["Workouts"])


@router.post("/complete", response_model=WorkoutCompletionResponse, summary="Complete exercises and collect rewards")
def complete_workout_api(
    request: Request,
    body: Any = Body(...),
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    payload = parse_completion_request(body)
    doc, record = complete_workout(store, user["id"], payload, clock(), request.app.state.cycle)
    return WorkoutCompletionResponse(
        workout_id=record.id,
        coins_earned=record.coins_earned or 0,
        total_calories=record.total_calories,
        streak=doc.streak,
        exercises=record.exercises,
        user=user_public(user, doc),
    )


@router.get("/history", response_model=WorkoutHistoryResponse, summary="Workout history, newest first")
def workout_history_api(
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
):
    doc, _ = store.load(user["id"])
    history, total_calories = workout_history(doc)
    return WorkoutHistoryResponse(
        history=history,
        total_workouts=doc.total_workouts,
        total_calories=total_calories,
    )


@router.get("/today", response_model=TodayStatsResponse, summary="Totals for the current day cycle")
def today_stats_api(
    request: Request,
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    now = clock()
    cycle = request.app.state.cycle
    doc, _ = reset_if_needed(store, user["id"], now, cycle)
    day_key, stats = today_stats(doc, now, cycle)
    return TodayStatsResponse(day_key=day_key, today_stats=stats)


@router.delete("/{workout_id}", summary="Delete a workout and reverse its rewards")
def delete_workout_api(
    workout_id: str,
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
) -> Dict[str, str]:
    delete_workout(store, user["id"], workout_id)
    return {"message": "Workout deleted successfully"}
