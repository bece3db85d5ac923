# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

import httpx

from musclerise.client import (
    AdminSetDate,
    ApiError,
    AppStore,
    CompleteExercise,
    LocalStateCache,
    MuscleRiseClient,
    SyncCoordinator,
    UserProfile,
    initial_state,
    sync_payload,
)
from musclerise.client.reducer import reduce
from musclerise.plans import seed_workout_plans
from musclerise.progress.models import DailyStats
from musclerise.users.models import UserDocument

NOON = datetime(2024, 3, 5, 12, 0)


def _state(user_id="u1"):
    state = initial_state(NOON, boundary_hour=4)
    return state.model_copy(update={"user": UserProfile(id=user_id, username="ana")})


def _completed(state, reps):
    return reduce(state, CompleteExercise("beginner", "pushups", reps), now=NOON, boundary_hour=4).state


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class RecordingPush:
    def __init__(self, failures=()) -> None:
        self.calls = []
        self.failures = list(failures)

    async def __call__(self, user_id, payload, key):
        self.calls.append((user_id, payload, key))
        if self.failures:
            raise self.failures.pop(0)
        return {"applied": True}


def _coordinator(push, fake, **kwargs):
    params = dict(debounce_sec=5.0, suppress_sec=5.0, max_attempts=3, backoff_sec=0.5)
    params.update(kwargs)
    return SyncCoordinator(push, clock=fake.clock, sleep=fake.sleep, **params)


class TestSyncPayload(unittest.TestCase):
    def test_logged_out_has_no_payload(self) -> None:
        self.assertIsNone(sync_payload(initial_state(NOON, boundary_hour=4)))

    def test_payload_is_camel_case_subset(self) -> None:
        payload = sync_payload(_completed(_state(), 4))
        self.assertEqual(payload["dayKey"], "2024-03-05")
        self.assertEqual(payload["planId"], "middle")
        self.assertEqual(payload["todayExercises"], 4)
        self.assertIn("userPlans", payload)
        self.assertNotIn("coins", payload)


class TestSyncCoordinator(unittest.IsolatedAsyncioTestCase):
    async def test_debounced_changes_collapse_into_one_push(self) -> None:
        fake, push = FakeTime(), RecordingPush()
        sync = _coordinator(push, fake)
        sync.notify(_completed(_state(), 2))
        latest = _completed(_state(), 6)
        sync.notify(latest)
        await sync.drain()
        self.assertEqual(len(push.calls), 1)
        user_id, payload, key = push.calls[0]
        self.assertEqual(user_id, "u1")
        self.assertEqual(payload, sync_payload(latest))
        self.assertEqual(len(key), 32)
        self.assertEqual(sync.pushes, 1)
        self.assertIsNone(sync.pending)

    async def test_identical_state_is_not_pushed_again(self) -> None:
        fake, push = FakeTime(), RecordingPush()
        sync = _coordinator(push, fake)
        state = _completed(_state(), 2)
        sync.notify(state)
        sync.notify(state)
        await sync.drain()
        sync.notify(state)
        await sync.drain()
        self.assertEqual(len(push.calls), 1)

    async def test_hydrated_state_is_not_echoed_back(self) -> None:
        fake, push = FakeTime(), RecordingPush()
        sync = _coordinator(push, fake)
        state = _state()
        sync.mark_hydrated(state)
        sync.notify(state)
        await sync.drain()
        self.assertEqual(push.calls, [])

    async def test_change_inside_suppression_window_waits_for_it(self) -> None:
        fake, push = FakeTime(), RecordingPush()
        sync = _coordinator(push, fake, debounce_sec=1.0, suppress_sec=5.0)
        pushed_at = []

        async def timed_push(user_id, payload, key):
            pushed_at.append(fake.now)
            return await push(user_id, payload, key)

        sync._push = timed_push
        sync.mark_hydrated(_state())
        sync.notify(_completed(_state(), 3))
        await sync.drain()
        self.assertEqual(len(push.calls), 1)
        self.assertGreaterEqual(pushed_at[0], 5.0)

    async def test_transport_errors_are_retried_with_same_key(self) -> None:
        fake = FakeTime()
        push = RecordingPush(failures=[httpx.ConnectError("down"), ApiError(503, "busy")])
        sync = _coordinator(push, fake)
        sync.notify(_completed(_state(), 2))
        sync._cancel_timer()
        self.assertTrue(await sync.flush())
        self.assertEqual(len(push.calls), 3)
        self.assertEqual(len({key for _, _, key in push.calls}), 1)
        self.assertEqual(fake.sleeps, [0.5, 1.0])

    async def test_client_errors_are_not_retried(self) -> None:
        fake = FakeTime()
        push = RecordingPush(failures=[ApiError(403, "Unauthorized to access this user")])
        sync = _coordinator(push, fake)
        sync.notify(_completed(_state(), 2))
        sync._cancel_timer()
        self.assertFalse(await sync.flush())
        self.assertEqual(len(push.calls), 1)
        self.assertIsNone(sync.pending)

    async def test_exhausted_retries_keep_payload_pending(self) -> None:
        fake = FakeTime()
        push = RecordingPush(failures=[ApiError(500, "x")] * 3)
        sync = _coordinator(push, fake)
        state = _completed(_state(), 2)
        sync.notify(state)
        sync._cancel_timer()
        with self.assertLogs("musclerise.client.sync", level="WARNING"):
            self.assertFalse(await sync.flush())
        self.assertEqual(len(push.calls), 3)
        self.assertEqual(sync.pending, sync_payload(state))
        self.assertEqual(sync.pushes, 0)

    async def test_timed_out_push_is_a_failure_and_stays_pending(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["Idempotency-Key"])
            raise httpx.ReadTimeout("timed out", request=request)

        api = MuscleRiseClient("http://test", token="t", transport=httpx.MockTransport(handler))
        fake = FakeTime()
        sync = _coordinator(
            lambda user_id, payload, key: api.push_state(user_id, payload, idempotency_key=key), fake
        )
        state = _completed(_state(), 2)
        sync.notify(state)
        sync._cancel_timer()
        with self.assertLogs("musclerise.client.sync", level="WARNING"):
            self.assertFalse(await sync.flush())
        self.assertEqual(len(seen), 3)
        self.assertEqual(len(set(seen)), 1)
        self.assertEqual(sync.pending, sync_payload(state))
        self.assertEqual(sync.pushes, 0)
        await api.aclose()

    async def test_logged_out_state_is_ignored(self) -> None:
        fake, push = FakeTime(), RecordingPush()
        sync = _coordinator(push, fake)
        sync.notify(initial_state(NOON, boundary_hour=4))
        await sync.drain()
        self.assertEqual(push.calls, [])
        await sync.aclose()


def _server_user():
    plans = seed_workout_plans()
    doc = UserDocument(
        plans=plans,
        daily_stats=DailyStats(date="2024-03-05", calories=2.0, exercises_completed=4, workouts_count=1),
        coins=42,
        streak=3,
    )
    payload = doc.model_dump(mode="json", by_alias=True)
    payload.update({"id": "u1", "username": "ana", "createdAt": "2024-01-01T00:00:00Z"})
    return payload


class TestApiClient(unittest.IsolatedAsyncioTestCase):
    async def test_push_sends_token_and_idempotency_key(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"applied": True})

        client = MuscleRiseClient("http://test", token="tok", transport=httpx.MockTransport(handler))
        await client.push_state("u1", {"planId": "middle"}, idempotency_key="abc")
        await client.aclose()
        request = seen[0]
        self.assertEqual(request.method, "PATCH")
        self.assertEqual(request.url.path, "/api/users/u1")
        self.assertEqual(request.headers["Authorization"], "Bearer tok")
        self.assertEqual(request.headers["Idempotency-Key"], "abc")
        self.assertEqual(json.loads(request.content), {"planId": "middle"})

    async def test_error_response_raises_api_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "already_completed", "detail": "done"})

        client = MuscleRiseClient("http://test", transport=httpx.MockTransport(handler))
        with self.assertRaises(ApiError) as ctx:
            await client.complete_workout([{"id": "pushups"}], plan_id="beginner")
        await client.aclose()
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail, "done")
        self.assertFalse(ctx.exception.retryable)

    async def test_login_keeps_token(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"token": "new-token", "user": {}})

        client = MuscleRiseClient("http://test", transport=httpx.MockTransport(handler))
        await client.login("ana", "password123")
        self.assertEqual(client.token, "new-token")
        await client.aclose()


class TestAppStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="musclerise-client-"))
        self.requests = []

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/auth/me":
            return httpx.Response(200, json={"user": _server_user(), "reset": False})
        if path == "/api/workouts/today":
            return httpx.Response(
                200,
                json={"dayKey": "2024-03-05", "todayStats": {"totalCalories": 2.0, "totalExercises": 4}},
            )
        if path == "/api/workouts/complete":
            return httpx.Response(200, json={"workoutId": "w1"})
        if path == "/api/users/u1":
            return httpx.Response(200, json={"applied": True})
        return httpx.Response(404, json={"detail": "not found"})

    def _store(self) -> AppStore:
        fake = FakeTime()
        api = MuscleRiseClient("http://test", token="tok", transport=httpx.MockTransport(self._handler))
        coordinator = SyncCoordinator(
            lambda uid, payload, key: api.push_state(uid, payload, idempotency_key=key),
            debounce_sec=5.0,
            suppress_sec=5.0,
            max_attempts=3,
            backoff_sec=0.5,
            clock=fake.clock,
            sleep=fake.sleep,
        )
        return AppStore(
            api,
            coordinator,
            LocalStateCache(self._tmp),
            clock=lambda: NOON,
            boundary_hour=4,
        )

    async def test_hydrate_then_complete_runs_effects_and_sync(self) -> None:
        store = self._store()
        state = await store.hydrate()
        self.assertEqual(state.coins, 42)
        self.assertEqual(state.today.exercises_completed, 4)
        self.assertIsNone(store.coordinator.pending)

        store.dispatch(CompleteExercise("middle", "squats", 5))
        await store.drain()
        paths = [(r.method, r.url.path) for r in self.requests]
        self.assertIn(("POST", "/api/workouts/complete"), paths)
        self.assertIn(("PATCH", "/api/users/u1"), paths)
        body = json.loads(next(r for r in self.requests if r.url.path == "/api/workouts/complete").content)
        self.assertEqual(body["planId"], "middle")
        self.assertEqual(body["exercises"][0]["completedReps"], 5)
        await store.aclose()

    async def test_state_and_override_survive_restart(self) -> None:
        store = self._store()
        await store.hydrate()
        store.dispatch(AdminSetDate("2024-03-10"))
        await store.drain()
        await store.aclose()

        again = self._store()
        self.assertEqual(again.state.admin_date_override, "2024-03-10")
        self.assertEqual(again.state.today.date, "2024-03-10")
        self.assertEqual(again.state.coins, 42)
        await again.aclose()


if __name__ == "__main__":
    unittest.main()
