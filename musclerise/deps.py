# -*- coding: utf-8 -*-
"""FastAPI dependencies for the explicitly constructed server services."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Request

from .users.storage import UserStore

Clock = Callable[[], datetime]


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock
