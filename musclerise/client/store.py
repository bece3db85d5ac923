# -*- coding: utf-8 -*-
"""Client store: owns the current state and runs the effects the reducer asks for."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Set
from uuid import uuid4

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..daykey import TzLike
from .actions import Hydrate, LoadWorkoutData, ResetTodayIfNeeded
from .api_client import ApiError, MuscleRiseClient
from .reducer import (
    PersistDateOverride,
    PersistPlanSelection,
    PushWorkoutCompletion,
    Transition,
    reduce,
)
from .state import AppState, initial_state
from .sync import SyncCoordinator

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalStateCache:
    """JSON files holding the last state snapshot and the date override."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root or settings.data_root / "client")

    @property
    def state_path(self) -> Path:
        return self.root / "state.json"

    @property
    def override_path(self) -> Path:
        return self.root / "override.json"

    def _write(self, path: Path, payload: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(path)

    def load_state(self) -> Optional[AppState]:
        if not self.state_path.exists():
            return None
        try:
            return AppState.model_validate_json(self.state_path.read_text(encoding="utf-8"))
        except PydanticValidationError as exc:
            logger.warning("Ignoring unreadable state cache %s: %s", self.state_path, exc)
            return None

    def save_state(self, state: AppState) -> None:
        self._write(self.state_path, state.model_dump(mode="json", by_alias=True))

    def load_override(self) -> Optional[str]:
        if not self.override_path.exists():
            return None
        try:
            data = json.loads(self.override_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return None
        return data.get("date") if isinstance(data, dict) else None

    def save_override(self, date: Optional[str]) -> None:
        if date is None:
            if self.override_path.exists():
                self.override_path.unlink()
            return
        self._write(self.override_path, {"date": date})

    def clear(self) -> None:
        for path in (self.state_path, self.override_path):
            if path.exists():
                path.unlink()


class AppStore:
    def __init__(
        self,
        api: MuscleRiseClient,
        coordinator: Optional[SyncCoordinator] = None,
        cache: Optional[LocalStateCache] = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
        boundary_hour: Optional[int] = None,
        tz: TzLike = None,
    ) -> None:
        self.api = api
        self.coordinator = coordinator or SyncCoordinator(
            lambda user_id, payload, key: api.push_state(user_id, payload, idempotency_key=key)
        )
        self.cache = cache
        self.clock = clock
        self.boundary_hour = settings.day_boundary_hour if boundary_hour is None else boundary_hour
        self.tz = tz if tz is not None else settings.timezone

        cached = cache.load_state() if cache else None
        override = cache.load_override() if cache else None
        self.state = initial_state(
            clock(), boundary_hour=self.boundary_hour, tz=self.tz, override=override, cached=cached
        )
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[Callable[[AppState], None]] = []

    def subscribe(self, listener: Callable[[AppState], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: Any) -> Transition:
        """Run one action through the reducer and schedule its effects.

        Must be called from inside a running event loop when the action can
        produce effects or trigger a sync.
        """
        transition = reduce(
            self.state, action, now=self.clock(), boundary_hour=self.boundary_hour, tz=self.tz
        )
        if transition.error is not None:
            logger.warning("%s rejected: %s", type(action).__name__, transition.error)
        if transition.state is not self.state:
            self.state = transition.state
            if self.cache is not None:
                self.cache.save_state(self.state)
            for listener in list(self._listeners):
                listener(self.state)
            self.coordinator.notify(self.state)
        for effect in transition.effects:
            self._spawn(self._run_effect(effect))
        return transition

    async def hydrate(self) -> AppState:
        """Pull the authoritative user, then today's totals."""
        me = await self.api.me()
        self.dispatch(ResetTodayIfNeeded())
        self.dispatch(Hydrate(user=me.get("user") or {}))
        self.coordinator.mark_hydrated(self.state)
        try:
            today = await self.api.today_stats()
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Could not load today's stats: %s", exc)
            return self.state
        stats = today.get("todayStats") or {}
        self.dispatch(
            LoadWorkoutData(
                day_key=today.get("dayKey") or self.state.today.date,
                calories=float(stats.get("totalCalories") or 0),
                exercises_completed=int(stats.get("totalExercises") or 0),
            )
        )
        self.coordinator.mark_hydrated(self.state)
        return self.state

    async def _run_effect(self, effect: Any) -> None:
        try:
            if isinstance(effect, PushWorkoutCompletion):
                await self.api.complete_workout(
                    [
                        {
                            "id": effect.exercise_id,
                            "name": effect.exercise_name,
                            "targetReps": effect.target_reps,
                            "completedReps": effect.reps,
                            "caloriesBurned": effect.calories,
                        }
                    ],
                    plan_id=effect.plan_id,
                    total_calories=effect.calories,
                )
            elif isinstance(effect, PersistPlanSelection):
                await self.api.push_state(
                    effect.user_id, {"planId": effect.plan_id}, idempotency_key=uuid4().hex
                )
            elif isinstance(effect, PersistDateOverride):
                if self.cache is not None:
                    self.cache.save_override(effect.date)
            else:
                logger.error("Unknown effect %r", effect)
        except (ApiError, httpx.HTTPError) as exc:
            # Local state stays as is; the next sync or hydrate reconciles.
            logger.warning("Effect %s failed: %s", type(effect).__name__, exc)

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for outstanding effects and the sync timer."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))
        await self.coordinator.drain()

    async def aclose(self) -> None:
        await self.drain()
        await self.coordinator.aclose()
        await self.api.aclose()
