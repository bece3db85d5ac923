# -*- coding: utf-8 -*-
"""Auth: Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..users.models import UserView


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class AuthResponse(BaseModel):
    user: UserView
    token: str


class MeResponse(BaseModel):
    user: UserView
    reset: bool = False
