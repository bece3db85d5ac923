# -*- coding: utf-8 -*-
"""Daily history ledger: one entry per day key."""

from __future__ import annotations

from typing import List, Sequence, Union

from .models import DailyStats, HistoryEntry

DayTotals = Union[DailyStats, HistoryEntry]


def history_entry_from_stats(stats: DayTotals) -> HistoryEntry:
    return HistoryEntry(
        date=stats.date,
        calories=stats.calories,
        exercises_completed=stats.exercises_completed,
    )


def upsert_history(history: Sequence[HistoryEntry], entry: HistoryEntry) -> List[HistoryEntry]:
    out = list(history)
    for idx, existing in enumerate(out):
        if existing.date == entry.date:
            out[idx] = entry
            return out
    out.append(entry)
    return out


def close_day(history: Sequence[HistoryEntry], stats: DayTotals) -> List[HistoryEntry]:
    """Write a finished day into the ledger; empty days leave no row."""
    if stats.is_empty:
        return list(history)
    return upsert_history(history, history_entry_from_stats(stats))
