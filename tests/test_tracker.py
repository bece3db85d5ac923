# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from musclerise.errors import NotFoundError
from musclerise.plans.models import Exercise, WorkoutPlan
from musclerise.progress.tracker import (
    calories_for,
    coins_for_calories,
    complete_exercise,
    credit_reps,
    reset_plans,
)


def _plans() -> list:
    return [
        WorkoutPlan(
            id="p1",
            name="Plan",
            exercises=[
                Exercise(id="pushups", name="Push-ups", calories_per_rep=0.5, target_reps=10),
                Exercise(id="lunges", name="Lunges", calories_per_rep=0.7, target_reps=20),
            ],
        )
    ]


class TestCompleteExercise(unittest.TestCase):
    def test_two_halves_complete_the_target(self) -> None:
        first = complete_exercise(_plans(), "p1", "pushups", 5)
        self.assertEqual(first.credited_reps, 5)
        self.assertFalse(first.exercise.completed)

        second = complete_exercise(first.plans, "p1", "pushups", 5)
        self.assertEqual(second.exercise.completed_reps, 10)
        self.assertTrue(second.exercise.completed)
        self.assertEqual(first.calories_added + second.calories_added, 5.0)
        self.assertEqual(coins_for_calories(first.calories_added + second.calories_added), 5)

    def test_repeat_after_completion_credits_nothing(self) -> None:
        done = complete_exercise(_plans(), "p1", "pushups", 10)
        again = complete_exercise(done.plans, "p1", "pushups", 5)
        self.assertTrue(again.already_completed)
        self.assertFalse(again.changed)
        self.assertEqual(again.credited_reps, 0)
        self.assertEqual(again.calories_added, 0)
        self.assertEqual(again.coins_added, 0)
        self.assertEqual(again.exercise.completed_reps, 10)

    def test_request_is_clamped_to_remaining(self) -> None:
        result = complete_exercise(_plans(), "p1", "pushups", 25)
        self.assertEqual(result.credited_reps, 10)
        self.assertEqual(result.exercise.completed_reps, 10)

    def test_negative_request_credits_nothing(self) -> None:
        self.assertEqual(credit_reps(_plans()[0].exercises[0], -3), 0)

    def test_inputs_are_not_mutated(self) -> None:
        plans = _plans()
        complete_exercise(plans, "p1", "pushups", 4)
        self.assertEqual(plans[0].exercises[0].completed_reps, 0)

    def test_coins_round_up_fractional_calories(self) -> None:
        result = complete_exercise(_plans(), "p1", "lunges", 3)
        self.assertAlmostEqual(result.calories_added, 2.1)
        self.assertEqual(result.coins_added, 3)
        # 0.7 * 10 must not turn into 8 coins through float noise.
        self.assertEqual(coins_for_calories(calories_for(_plans()[0].exercises[1], 10)), 7)

    def test_unknown_plan_or_exercise(self) -> None:
        with self.assertRaises(NotFoundError):
            complete_exercise(_plans(), "nope", "pushups", 1)
        with self.assertRaises(NotFoundError):
            complete_exercise(_plans(), "p1", "nope", 1)

    def test_progress_bounds_hold_for_any_sequence(self) -> None:
        plans = _plans()
        for reps in (3, 0, 7, 4, 100, -2, 1):
            plans = complete_exercise(plans, "p1", "lunges", reps).plans
            exercise = plans[0].exercises[1]
            self.assertGreaterEqual(exercise.completed_reps, 0)
            self.assertLessEqual(exercise.completed_reps, exercise.target_reps)
            self.assertEqual(exercise.completed, exercise.completed_reps >= exercise.target_reps)


class TestExerciseModel(unittest.TestCase):
    def test_loaded_progress_is_clamped(self) -> None:
        exercise = Exercise.model_validate({"id": "x", "name": "X", "targetReps": 5, "completedReps": 9})
        self.assertEqual(exercise.completed_reps, 5)
        self.assertTrue(exercise.completed)
        self.assertEqual(exercise.remaining_reps, 0)


class TestResetPlans(unittest.TestCase):
    def test_reset_zeroes_progress(self) -> None:
        plans = complete_exercise(_plans(), "p1", "pushups", 10).plans
        fresh = reset_plans(plans)
        self.assertEqual(fresh[0].exercises[0].completed_reps, 0)
        self.assertFalse(fresh[0].exercises[0].completed)
        self.assertEqual(plans[0].exercises[0].completed_reps, 10)


if __name__ == "__main__":
    unittest.main()
