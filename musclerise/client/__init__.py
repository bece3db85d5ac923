# -*- coding: utf-8 -*-
"""Client state engine: pure reducer, effect-running store and write-behind sync."""

from .actions import (
    AdminNextDay,
    AdminPrevDay,
    AdminResetDate,
    AdminSetDate,
    CompleteExercise,
    Hydrate,
    LoadWorkoutData,
    Logout,
    ResetTodayIfNeeded,
    SelectPlan,
    SetRank,
    UpdateCustomExercises,
)
from .api_client import ApiError, MuscleRiseClient
from .reducer import PersistDateOverride, PersistPlanSelection, PushWorkoutCompletion, Transition, reduce
from .state import AppState, UserProfile, initial_state
from .store import AppStore, LocalStateCache
from .sync import SyncCoordinator, sync_payload

__all__ = [
    "AdminNextDay",
    "AdminPrevDay",
    "AdminResetDate",
    "AdminSetDate",
    "ApiError",
    "AppState",
    "AppStore",
    "CompleteExercise",
    "Hydrate",
    "LoadWorkoutData",
    "LocalStateCache",
    "Logout",
    "MuscleRiseClient",
    "PersistDateOverride",
    "PersistPlanSelection",
    "PushWorkoutCompletion",
    "ResetTodayIfNeeded",
    "SelectPlan",
    "SetRank",
    "SyncCoordinator",
    "Transition",
    "UpdateCustomExercises",
    "UserProfile",
    "initial_state",
    "reduce",
    "sync_payload",
]
