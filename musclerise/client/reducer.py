# -*- coding: utf-8 -*-
"""Pure state transitions for the client.

``reduce`` never touches the network or the disk. Anything that has to leave
the process is returned as an effect on the :class:`Transition`, and the
store decides when and how to run it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from ..daykey import DEFAULT_DAY_BOUNDARY_HOUR, TzLike, resolve_day_key, shift_day_key
from ..errors import MuscleRiseError, NotFoundError
from ..plans.catalog import build_custom_plan, pin_snapshot, select_plan_for_date, workout_data_for_date
from ..plans.models import CUSTOM_PLAN_ID, DateWorkoutSnapshot, WorkoutPlan, find_plan
from ..progress.history import close_day, upsert_history
from ..progress.tracker import coins_for_calories, complete_exercise
from ..users.models import UserDocument
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
from .state import AppState, StatsEntry, UserProfile, initial_state


# ---- effects ----

@dataclass(frozen=True)
class PushWorkoutCompletion:
    user_id: str
    plan_id: str
    exercise_id: str
    exercise_name: str
    target_reps: int
    reps: int
    calories: float


@dataclass(frozen=True)
class PersistDateOverride:
    date: Optional[str]


@dataclass(frozen=True)
class PersistPlanSelection:
    user_id: str
    plan_id: str


Effect = Any


@dataclass(frozen=True)
class Transition:
    state: AppState
    effects: Tuple[Effect, ...] = ()
    error: Optional[MuscleRiseError] = None


@dataclass(frozen=True)
class _Clock:
    now: datetime
    boundary_hour: int
    tz: TzLike

    @property
    def real_day_key(self) -> str:
        return resolve_day_key(self.now, boundary_hour=self.boundary_hour, tz=self.tz)

    def day_key(self, state: AppState) -> str:
        return state.admin_date_override or self.real_day_key


# ---- helpers ----

def _profile(state: AppState) -> UserProfile:
    return state.user or UserProfile()


def _user_id(state: AppState) -> Optional[str]:
    return state.user.id if state.user is not None else None


def _data_for(state: AppState, day_key: str) -> DateWorkoutSnapshot:
    profile = _profile(state)
    return workout_data_for_date(
        day_key,
        state.date_workout_data_map,
        custom_exercises=profile.custom_exercises,
        custom_plan_name=profile.custom_plan_name,
        selected_plan_id=profile.plan_id,
    )


def _pin_current(state: AppState, day_key: str) -> Dict[str, DateWorkoutSnapshot]:
    return pin_snapshot(
        state.date_workout_data_map,
        day_key,
        DateWorkoutSnapshot(plan_id=state.workout_plan_id, plans=state.workout_plans),
        replace=True,
    )


def _with_custom_overlay(plans: List[WorkoutPlan], profile: UserProfile) -> List[WorkoutPlan]:
    plans = list(plans)
    existing = find_plan(plans, CUSTOM_PLAN_ID)
    if not profile.custom_exercises:
        return [p for p in plans if p.id != CUSTOM_PLAN_ID]
    fresh = build_custom_plan(profile.custom_exercises, profile.custom_plan_name)
    if existing is not None:
        if [(e.id, e.target_reps) for e in existing.exercises] == [(e.id, e.target_reps) for e in fresh.exercises]:
            fresh = existing.model_copy(update={"name": fresh.name})
        plans = [p for p in plans if p.id != CUSTOM_PLAN_ID]
    plans.append(fresh)
    return plans


def _move_to_date(state: AppState, day_key: str) -> Transition:
    snapshots = _pin_current(state, state.today.date)
    moved = state.model_copy(update={"date_workout_data_map": snapshots})
    data = _data_for(moved, day_key)
    new_state = moved.model_copy(
        update={
            "admin_date_override": day_key,
            "workout_plan_id": data.plan_id,
            "workout_plans": data.plans,
            "today": state.today.model_copy(update={"date": day_key}),
            "date_workout_data_map": pin_snapshot(snapshots, day_key, data),
        }
    )
    return Transition(new_state, (PersistDateOverride(day_key),))


# ---- handlers ----

def _complete_exercise(state: AppState, action: CompleteExercise, clock: _Clock) -> Transition:
    try:
        result = complete_exercise(state.workout_plans, action.plan_id, action.exercise_id, action.reps)
    except NotFoundError as exc:
        return Transition(state, error=exc)
    if not result.changed:
        return Transition(state)

    day_key = clock.day_key(state)
    base = state.today if state.today.date == day_key else StatsEntry(date=day_key)
    today = base.model_copy(
        update={
            "calories": round(base.calories + result.calories_added, 6),
            "exercises_completed": base.exercises_completed + result.credited_reps,
        }
    )
    new_state = state.model_copy(
        update={
            "workout_plans": result.plans,
            "today": today,
            "coins": state.coins + coins_for_calories(today.calories) - coins_for_calories(base.calories),
            "history": upsert_history(state.history, today),
            "date_workout_data_map": pin_snapshot(
                state.date_workout_data_map,
                day_key,
                DateWorkoutSnapshot(plan_id=state.workout_plan_id, plans=result.plans),
                replace=True,
            ),
        }
    )
    effects: Tuple[Effect, ...] = ()
    user_id = _user_id(state)
    if user_id:
        effects = (
            PushWorkoutCompletion(
                user_id=user_id,
                plan_id=action.plan_id,
                exercise_id=result.exercise.id,
                exercise_name=result.exercise.name,
                target_reps=result.exercise.target_reps,
                reps=result.credited_reps,
                calories=result.calories_added,
            ),
        )
    return Transition(new_state, effects)


def _reset_today_if_needed(state: AppState, action: ResetTodayIfNeeded, clock: _Clock) -> Transition:
    if state.admin_date_override:
        return Transition(state)
    day_key = clock.real_day_key
    if state.today.date == day_key:
        return Transition(state)

    history = close_day(state.history, state.today)
    snapshots = _pin_current(state, state.today.date)
    moved = state.model_copy(update={"date_workout_data_map": snapshots})
    data = _data_for(moved, day_key)
    return Transition(
        moved.model_copy(
            update={
                "today": StatsEntry(date=day_key),
                "history": history,
                "workout_plan_id": data.plan_id,
                "workout_plans": data.plans,
                "date_workout_data_map": pin_snapshot(snapshots, day_key, data),
            }
        )
    )


def _hydrate(state: AppState, action: Hydrate, clock: _Clock) -> Transition:
    raw = action.user
    doc = UserDocument.model_validate(raw)
    profile = UserProfile(
        id=raw.get("id"),
        username=raw.get("username"),
        name=raw.get("name") or raw.get("username"),
        custom_exercises=doc.custom_exercises,
        custom_plan_name=doc.custom_plan_name,
        plan_id=doc.current_plan_id or doc.plan_id,
    )
    day_key = clock.day_key(state)

    # Server pins win; local pins only fill days the server has not seen.
    snapshots = dict(state.date_workout_data_map)
    snapshots.update(doc.date_workout_data_map)

    if doc.daily_stats is not None and doc.daily_stats.date == day_key:
        plans = _with_custom_overlay(doc.plans, profile)
        today = StatsEntry(
            date=day_key,
            calories=doc.daily_stats.calories,
            exercises_completed=doc.daily_stats.exercises_completed,
        )
    else:
        plans = workout_data_for_date(
            day_key,
            snapshots,
            custom_exercises=profile.custom_exercises,
            custom_plan_name=profile.custom_plan_name,
            selected_plan_id=profile.plan_id,
        ).plans
        today = state.today if state.today.date == day_key else StatsEntry(date=day_key)

    plan_id = doc.current_plan_id or doc.plan_id
    if not plan_id or find_plan(plans, plan_id) is None:
        plan_id = select_plan_for_date(day_key, plans)

    history = list(doc.daily_history)
    known = {entry.date for entry in history}
    history.extend(entry for entry in state.history if entry.date not in known)
    if not today.is_empty:
        history = upsert_history(history, today)

    new_state = state.model_copy(
        update={
            "user": profile,
            "coins": doc.coins,
            "streak": doc.streak,
            "workout_plan_id": plan_id,
            "workout_plans": plans,
            "today": today,
            "history": history,
            "date_workout_data_map": pin_snapshot(
                snapshots, day_key, DateWorkoutSnapshot(plan_id=plan_id, plans=plans), replace=True
            ),
        }
    )
    return Transition(new_state)


def _load_workout_data(state: AppState, action: LoadWorkoutData, clock: _Clock) -> Transition:
    day_key = clock.day_key(state)
    if action.day_key != day_key:
        return Transition(state)
    today = StatsEntry(date=day_key, calories=action.calories, exercises_completed=action.exercises_completed)
    history = state.history if today.is_empty else upsert_history(state.history, today)
    return Transition(state.model_copy(update={"today": today, "history": history}))


def _select_plan(state: AppState, action: SelectPlan, clock: _Clock) -> Transition:
    if find_plan(state.workout_plans, action.plan_id) is None:
        return Transition(state, error=NotFoundError(f"Plan {action.plan_id} not found"))
    profile = _profile(state).model_copy(update={"plan_id": action.plan_id})
    selected = state.model_copy(update={"workout_plan_id": action.plan_id, "user": profile})
    selected = selected.model_copy(update={"date_workout_data_map": _pin_current(selected, clock.day_key(state))})
    effects: Tuple[Effect, ...] = ()
    if profile.id:
        effects = (PersistPlanSelection(user_id=profile.id, plan_id=action.plan_id),)
    return Transition(selected, effects)


def _update_custom_exercises(state: AppState, action: UpdateCustomExercises, clock: _Clock) -> Transition:
    profile = _profile(state).model_copy(
        update={
            "custom_exercises": list(action.exercises),
            "custom_plan_name": action.name if action.name is not None else _profile(state).custom_plan_name,
        }
    )
    plans = _with_custom_overlay(state.workout_plans, profile)
    day_key = clock.day_key(state)
    if action.exercises:
        plan_id = CUSTOM_PLAN_ID
    elif state.workout_plan_id == CUSTOM_PLAN_ID:
        plan_id = select_plan_for_date(day_key, plans)
    else:
        plan_id = state.workout_plan_id
    profile = profile.model_copy(update={"plan_id": plan_id})
    updated = state.model_copy(update={"user": profile, "workout_plans": plans, "workout_plan_id": plan_id})
    return Transition(updated.model_copy(update={"date_workout_data_map": _pin_current(updated, day_key)}))


def _admin_set_date(state: AppState, action: AdminSetDate, clock: _Clock) -> Transition:
    return _move_to_date(state, action.date)


def _admin_next_day(state: AppState, action: AdminNextDay, clock: _Clock) -> Transition:
    return _move_to_date(state, shift_day_key(clock.day_key(state), 1))


def _admin_prev_day(state: AppState, action: AdminPrevDay, clock: _Clock) -> Transition:
    return _move_to_date(state, shift_day_key(clock.day_key(state), -1))


def _admin_reset_date(state: AppState, action: AdminResetDate, clock: _Clock) -> Transition:
    real = clock.real_day_key
    snapshots = _pin_current(state, state.today.date)
    cleared = state.model_copy(update={"admin_date_override": None, "date_workout_data_map": snapshots})
    data = _data_for(cleared, real)
    today = state.today if state.today.date == real else StatsEntry(date=real)
    return Transition(
        cleared.model_copy(
            update={
                "today": today,
                "workout_plan_id": data.plan_id,
                "workout_plans": data.plans,
                "date_workout_data_map": pin_snapshot(snapshots, real, data),
            }
        ),
        (PersistDateOverride(None),),
    )


def _set_rank(state: AppState, action: SetRank, clock: _Clock) -> Transition:
    return Transition(state.model_copy(update={"rank": action.to_rank()}))


def _logout(state: AppState, action: Logout, clock: _Clock) -> Transition:
    fresh = initial_state(clock.now, boundary_hour=clock.boundary_hour, tz=clock.tz)
    return Transition(fresh, (PersistDateOverride(None),) if state.admin_date_override else ())


Handler = Callable[[AppState, Any, _Clock], Transition]

_TRANSITIONS: Dict[Type[Any], Handler] = {
    CompleteExercise: _complete_exercise,
    ResetTodayIfNeeded: _reset_today_if_needed,
    Hydrate: _hydrate,
    LoadWorkoutData: _load_workout_data,
    SelectPlan: _select_plan,
    UpdateCustomExercises: _update_custom_exercises,
    AdminSetDate: _admin_set_date,
    AdminNextDay: _admin_next_day,
    AdminPrevDay: _admin_prev_day,
    AdminResetDate: _admin_reset_date,
    SetRank: _set_rank,
    Logout: _logout,
}


def reduce(
    state: AppState,
    action: Any,
    *,
    now: datetime,
    boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: TzLike = None,
) -> Transition:
    handler = _TRANSITIONS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported action: {type(action).__name__}")
    return handler(state, action, _Clock(now=now, boundary_hour=boundary_hour, tz=tz))
