# -*- coding: utf-8 -*-
"""Write-behind sync of the client state to ``PATCH /api/users/{id}``.

Changes are debounced and compared by value against the last payload the
server acknowledged, so repeated notifications with the same state cost
nothing. Each push carries its own idempotency key; transport failures and
5xx answers are retried with exponential backoff, 4xx answers are not.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from uuid import uuid4

import httpx

from ..config import settings
from ..users.models import UserSyncRequest
from .api_client import ApiError
from .state import AppState

logger = logging.getLogger(__name__)

PushFn = Callable[[str, Dict[str, Any], str], Awaitable[Any]]


def sync_payload(state: AppState) -> Optional[Dict[str, Any]]:
    """Sync-relevant subset of ``state`` as a camelCase JSON body, or None when logged out."""
    if state.user is None or not state.user.id:
        return None
    request = UserSyncRequest(
        day_key=state.today.date,
        plan_id=state.workout_plan_id,
        user_plans=state.workout_plans,
        custom_exercises=state.user.custom_exercises,
        custom_plan_name=state.user.custom_plan_name,
        daily_history=state.history,
        date_workout_data_map=state.date_workout_data_map,
        today_calories=state.today.calories,
        today_exercises=state.today.exercises_completed,
    )
    return request.model_dump(mode="json", by_alias=True, exclude_none=True)


class SyncCoordinator:
    def __init__(
        self,
        push: PushFn,
        *,
        debounce_sec: Optional[float] = None,
        suppress_sec: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_sec: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._push = push
        self.debounce_sec = settings.sync_debounce_sec if debounce_sec is None else debounce_sec
        self.suppress_sec = settings.hydrate_suppress_sec if suppress_sec is None else suppress_sec
        self.max_attempts = max(1, settings.sync_max_attempts if max_attempts is None else max_attempts)
        self.backoff_sec = settings.sync_backoff_sec if backoff_sec is None else backoff_sec
        self._clock = clock
        self._sleep = sleep

        self._acked: Optional[Dict[str, Any]] = None
        self._pending: Optional[Tuple[str, Dict[str, Any]]] = None
        self._suppress_until = 0.0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self.pushes = 0

    @property
    def pending(self) -> Optional[Dict[str, Any]]:
        return self._pending[1] if self._pending else None

    def notify(self, state: AppState) -> None:
        payload = sync_payload(state)
        if payload is None:
            return
        if payload == self._acked:
            # Back to what the server already has.
            self._pending = None
            self._cancel_timer()
            return
        if self._pending is not None and self._pending[1] == payload:
            return
        self._pending = (state.user.id, payload)
        self._arm(self.debounce_sec)

    def mark_hydrated(self, state: AppState) -> None:
        """Treat ``state`` as acknowledged and hold pushes for the suppression window."""
        self._acked = sync_payload(state)
        self._pending = None
        self._cancel_timer()
        self._suppress_until = self._clock() + self.suppress_sec

    async def flush(self) -> bool:
        """Push the pending payload now. Returns True if the server took it."""
        pending = self._pending
        if pending is None:
            return False
        user_id, payload = pending
        key = uuid4().hex
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._push(user_id, payload, key)
            except ApiError as exc:
                if not exc.retryable:
                    logger.warning("Sync rejected for user %s: %s", user_id, exc)
                    if self._pending is pending:
                        self._pending = None
                    return False
                logger.warning("Sync attempt %s/%s failed: %s", attempt, self.max_attempts, exc)
            except httpx.HTTPError as exc:
                logger.warning("Sync attempt %s/%s failed: %s", attempt, self.max_attempts, exc)
            else:
                self._acked = payload
                if self._pending is pending:
                    self._pending = None
                self.pushes += 1
                return True
            if attempt < self.max_attempts:
                await self._sleep(self.backoff_sec * (2 ** (attempt - 1)))
        logger.warning("Sync for user %s gave up after %s attempts; keeping it pending", user_id, self.max_attempts)
        return False

    async def drain(self) -> None:
        """Wait for the armed timer and any push in flight."""
        while True:
            task = self._timer if self._timer is not None and not self._timer.done() else self._inflight
            if task is None or task.done():
                return
            await asyncio.wait({task})

    async def aclose(self) -> None:
        self._cancel_timer()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            await asyncio.gather(self._inflight, return_exceptions=True)

    # ---- timers ----

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _arm(self, delay: float) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire(delay))

    async def _wait_then_fire(self, delay: float) -> None:
        await self._sleep(delay)
        remaining = self._suppress_until - self._clock()
        if remaining > 0:
            # Still inside the hydration window; try again once it closes.
            self._timer = asyncio.get_running_loop().create_task(self._wait_then_fire(remaining))
            return
        self._timer = None
        if self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})
        self._inflight = asyncio.get_running_loop().create_task(self.flush())
