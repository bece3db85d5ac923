# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from musclerise.daykey import DayCycle
from musclerise.errors import AlreadyCompletedError, ConflictError, NotFoundError, ValidationError
from musclerise.users.models import UserDocument
from musclerise.users.storage import UserStore
from musclerise.workouts.models import WorkoutCompletionRequest
from musclerise.workouts.service import complete_workout, new_user_document

CYCLE = DayCycle(4, "UTC")
NOW = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


class TestUserStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="musclerise-store-"))
        self.store = UserStore(self._tmp / "app.db")
        self.store.init()
        self.user = self.store.create_user(
            username="ana", password_hash="x", document=new_user_document(NOW, CYCLE)
        )

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_save_bumps_version(self) -> None:
        doc, version = self.store.load(self.user["id"])
        self.assertEqual(version, 0)
        doc.coins = 10
        self.assertEqual(self.store.save(self.user["id"], doc, version), 1)
        reloaded, version = self.store.load(self.user["id"])
        self.assertEqual((reloaded.coins, version), (10, 1))

    def test_stale_version_conflicts(self) -> None:
        doc, version = self.store.load(self.user["id"])
        self.store.save(self.user["id"], doc, version)
        with self.assertRaises(ConflictError) as ctx:
            self.store.save(self.user["id"], doc, version)
        self.assertEqual((ctx.exception.expected, ctx.exception.current), (0, 1))
        self.assertEqual(ctx.exception.status_code, 409)

    def test_mutate_reruns_after_concurrent_write(self) -> None:
        calls = []

        def add_coins(doc: UserDocument) -> int:
            calls.append(doc.coins)
            if len(calls) == 1:
                # Another writer lands between our read and our write.
                other, version = self.store.load(self.user["id"])
                other.coins += 7
                self.store.save(self.user["id"], other, version)
            doc.coins += 3
            return doc.coins

        doc, result = self.store.mutate(self.user["id"], add_coins)
        self.assertEqual(calls, [0, 7])
        self.assertEqual(result, 10)
        self.assertEqual(self.store.load(self.user["id"])[0].coins, 10)

    def test_mutate_gives_up_after_attempts(self) -> None:
        runs = []

        def always_raced(doc: UserDocument) -> None:
            runs.append(doc.coins)
            other, version = self.store.load(self.user["id"])
            other.coins += 1
            self.store.save(self.user["id"], other, version)
            doc.streak += 1

        with self.assertRaises(ConflictError) as ctx:
            self.store.mutate(self.user["id"], always_raced, attempts=2)
        self.assertEqual(runs, [0, 1])
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(self.store.load(self.user["id"])[0].streak, 0)

    def test_unchanged_document_is_not_written(self) -> None:
        self.store.mutate(self.user["id"], lambda doc: None)
        self.assertEqual(self.store.load(self.user["id"])[1], 0)

    def test_racing_completion_is_credited_once(self) -> None:
        request = WorkoutCompletionRequest.model_validate(
            {
                "planId": "middle",
                "exercises": [{"id": "pushups", "name": "Push-ups", "targetReps": 25, "completedReps": 25}],
            }
        )
        original_load = self.store.load
        loads = []

        def load_then_race(user_id):
            loaded = original_load(user_id)
            loads.append(user_id)
            # Second read is the completion read-modify-write; let a parallel
            # request finish the same exercise right after it.
            if len(loads) == 2:
                complete_workout(self.store, user_id, request, NOW, CYCLE)
            return loaded

        self.store.load = load_then_race
        with self.assertRaises(AlreadyCompletedError):
            complete_workout(self.store, self.user["id"], request, NOW, CYCLE)
        self.store.load = original_load
        doc, _ = self.store.load(self.user["id"])
        self.assertEqual(len(doc.workout_history), 1)

    def test_duplicate_username(self) -> None:
        with self.assertRaises(ValidationError):
            self.store.create_user(username="ana", password_hash="y", document=UserDocument())

    def test_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            self.store.load("missing")

    def test_rank_by_coins(self) -> None:
        other = self.store.create_user(username="bo", password_hash="x", document=UserDocument(coins=50))
        self.assertEqual(self.store.rank(other["id"]), (1, 2))
        self.assertEqual(self.store.rank(self.user["id"]), (2, 2))


if __name__ == "__main__":
    unittest.main()
