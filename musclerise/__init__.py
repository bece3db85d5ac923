# -*- coding: utf-8 -*-
"""MuscleRise day-cycle and workout-progress engine."""

__version__ = "1.0.0"
