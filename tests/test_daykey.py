# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from musclerise.daykey import (
    DayCycle,
    last_boundary,
    needs_reset,
    parse_timestamp,
    previous_day_key,
    resolve_day_key,
    shift_day_key,
)


class TestResolveDayKey(unittest.TestCase):
    def test_before_boundary_belongs_to_previous_day(self) -> None:
        self.assertEqual(resolve_day_key(datetime(2024, 3, 5, 2, 0)), "2024-03-04")

    def test_at_boundary_starts_new_day(self) -> None:
        self.assertEqual(resolve_day_key(datetime(2024, 3, 5, 4, 0)), "2024-03-05")

    def test_boundary_is_configurable(self) -> None:
        moment = datetime(2024, 3, 5, 5, 30)
        self.assertEqual(resolve_day_key(moment, boundary_hour=4), "2024-03-05")
        self.assertEqual(resolve_day_key(moment, boundary_hour=6), "2024-03-04")

    def test_month_and_year_rollover(self) -> None:
        self.assertEqual(resolve_day_key(datetime(2024, 3, 1, 1, 0)), "2024-02-29")
        self.assertEqual(resolve_day_key(datetime(2025, 1, 1, 3, 59)), "2024-12-31")

    def test_override_returned_verbatim(self) -> None:
        self.assertEqual(resolve_day_key(datetime(2024, 3, 5, 2, 0), "2030-01-01"), "2030-01-01")

    def test_same_instant_is_stable(self) -> None:
        moment = datetime(2024, 7, 9, 3, 15, tzinfo=timezone.utc)
        keys = {resolve_day_key(moment, tz="UTC") for _ in range(5)}
        self.assertEqual(keys, {"2024-07-08"})

    def test_aware_times_use_zone(self) -> None:
        moment = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
        # 10:00 UTC is 02:00 in Los Angeles (PST, UTC-8).
        self.assertEqual(resolve_day_key(moment, tz="America/Los_Angeles"), "2024-03-04")
        self.assertEqual(resolve_day_key(moment, tz="UTC"), "2024-03-05")


class TestDayArithmetic(unittest.TestCase):
    def test_shift(self) -> None:
        self.assertEqual(shift_day_key("2024-03-10", 1), "2024-03-11")
        self.assertEqual(shift_day_key("2024-03-01", -1), "2024-02-29")
        self.assertEqual(previous_day_key("2024-01-01"), "2023-12-31")

    def test_parse_timestamp_accepts_z_suffix(self) -> None:
        parsed = parse_timestamp("2024-03-05T04:00:00Z")
        self.assertEqual(parsed, datetime(2024, 3, 5, 4, 0, tzinfo=timezone.utc))
        self.assertIsNone(parse_timestamp(""))
        self.assertIsNone(parse_timestamp(None))


class TestNeedsReset(unittest.TestCase):
    def test_reset_after_boundary(self) -> None:
        # Reset at 03:00 on the 1st, checked at 05:00 on the 2nd: 04:00 on the 2nd lies between.
        self.assertTrue(needs_reset("2024-01-01T03:00:00", datetime(2024, 1, 2, 5, 0), boundary_hour=4))

    def test_reset_when_boundary_crossed_since_yesterday(self) -> None:
        self.assertTrue(needs_reset("2024-03-04T05:00:00", datetime(2024, 3, 5, 4, 30)))

    def test_no_reset_before_boundary(self) -> None:
        self.assertFalse(needs_reset("2024-03-04T05:00:00", datetime(2024, 3, 5, 3, 30)))

    def test_missing_timestamp_resets(self) -> None:
        self.assertTrue(needs_reset(None, datetime(2024, 3, 5, 12, 0)))

    def test_same_cycle_does_not_reset(self) -> None:
        self.assertFalse(needs_reset("2024-03-05T04:00:00", datetime(2024, 3, 5, 23, 0)))

    def test_last_boundary(self) -> None:
        self.assertEqual(last_boundary(datetime(2024, 3, 5, 3, 0)), datetime(2024, 3, 4, 4, 0))
        self.assertEqual(last_boundary(datetime(2024, 3, 5, 4, 0)), datetime(2024, 3, 5, 4, 0))


class TestDayCycle(unittest.TestCase):
    def test_bundles_boundary_and_zone(self) -> None:
        cycle = DayCycle(4, "UTC")
        self.assertEqual(cycle.day_key(datetime(2024, 3, 5, 3, 0, tzinfo=timezone.utc)), "2024-03-04")
        self.assertEqual(cycle.day_key_of("2024-03-05T05:00:00Z"), "2024-03-05")
        self.assertIsNone(cycle.day_key_of(None))
        self.assertTrue(
            cycle.needs_reset("2024-03-04T05:00:00Z", datetime(2024, 3, 5, 4, 30, tzinfo=timezone.utc))
        )

    def test_rejects_out_of_range_boundary(self) -> None:
        with self.assertRaises(ValueError):
            DayCycle(24)


if __name__ == "__main__":
    unittest.main()
