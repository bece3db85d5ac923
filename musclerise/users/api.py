# -*- coding: utf-8 -*-
"""Users: write-behind sync target, rank and stats."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from ..auth.security import get_current_user
from ..deps import Clock, get_clock, get_store
from ..errors import ForbiddenError, NotFoundError
from ..workouts.service import reset_if_needed, user_view
from .models import Rank, RankResponse, UserStatsResponse, UserSyncRequest, UserSyncResponse
from .storage import UserStore
from .sync import merge_sync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _require_owner(user: dict, user_id: str) -> None:
    if user["id"] != user_id:
        raise ForbiddenError("Unauthorized to access this user")


@router.patch("/{user_id}", response_model=UserSyncResponse, summary="Merge a client state push")
def sync_user(
    user_id: str,
    payload: UserSyncRequest,
    request: Request,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    _require_owner(user, user_id)
    now = clock()
    cycle = request.app.state.cycle
    reset_if_needed(store, user_id, now, cycle)
    doc, applied = store.mutate(
        user_id,
        lambda d: merge_sync(d, payload, server_today=cycle.day_key(now), idempotency_key=idempotency_key),
    )
    if not applied:
        logger.info("Replayed sync %s for user %s ignored", idempotency_key, user_id)
    return UserSyncResponse(
        message="User updated successfully" if applied else "Already applied",
        applied=applied,
        user=user_view(user, doc),
    )


@router.get("/{user_id}/rank", response_model=RankResponse, summary="Leaderboard position by coins")
def user_rank(
    user_id: str,
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
):
    _require_owner(user, user_id)
    position, total = store.rank(user_id)
    return RankResponse(rank=Rank(position=position, total=total))


@router.get("/{user_id}/stats", response_model=UserStatsResponse, summary="Lifetime statistics")
def user_stats(
    user_id: str,
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
):
    if not store.get_user_by_id(user_id):
        raise NotFoundError("User not found")
    doc, _ = store.load(user_id)
    active = sorted(
        (e.date for e in doc.daily_history if e.calories > 0 or e.exercises_completed > 0),
        reverse=True,
    )
    average = round(doc.total_calories / doc.total_workouts) if doc.total_workouts > 0 else 0
    return UserStatsResponse(
        total_workouts=doc.total_workouts,
        total_exercises=doc.total_exercises,
        total_calories=doc.total_calories,
        average_calories_per_day=average,
        streak=doc.streak,
        last_workout_date=active[0] if active else None,
    )
