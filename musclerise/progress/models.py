# -*- coding: utf-8 -*-
"""Progress domain: Pydantic models."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from ..plans.models import CamelModel


class DailyStats(CamelModel):
    date: str = Field(..., description="YYYY-MM-DD day key")
    calories: float = Field(0.0, ge=0)
    exercises_completed: int = Field(0, ge=0)
    workouts_count: int = Field(0, ge=0)
    last_reset_at: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.calories <= 0 and self.exercises_completed <= 0


class HistoryEntry(CamelModel):
    date: str = Field(..., description="YYYY-MM-DD day key")
    calories: float = Field(0.0, ge=0)
    exercises_completed: int = Field(0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.calories <= 0 and self.exercises_completed <= 0
