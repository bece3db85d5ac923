# -*- coding: utf-8 -*-
"""Auth: API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..deps import Clock, get_clock, get_store
from ..errors import AuthError, ValidationError
from ..users.storage import UserStore
from ..workouts.service import new_user_document, reset_if_needed, user_view
from .models import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from .security import create_access_token, get_current_user, hash_password, verify_password

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register(
    payload: RegisterRequest,
    request: Request,
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    if store.get_user_by_username(payload.username):
        raise ValidationError("Username already registered", fields=[{"field": "username"}])

    document = new_user_document(clock(), request.app.state.cycle)
    user = store.create_user(
        username=payload.username,
        password_hash=hash_password(payload.password),
        document=document,
    )
    token = create_access_token(user_id=user["id"], username=user["username"])
    return AuthResponse(user=user_view(user, document), token=token)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(
    payload: LoginRequest,
    request: Request,
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    user = store.get_user_by_username(payload.username)
    if not user or not verify_password(payload.password, user["password_hash"]):
        raise AuthError("Invalid username or password")

    doc, _ = reset_if_needed(store, user["id"], clock(), request.app.state.cycle)
    token = create_access_token(user_id=user["id"], username=user["username"])
    return AuthResponse(user=user_view(user, doc), token=token)


@router.get("/me", response_model=MeResponse, summary="Get current user (runs the daily reset)")
def me(
    request: Request,
    user: dict = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    doc, was_reset = reset_if_needed(store, user["id"], clock(), request.app.state.cycle)
    return MeResponse(user=user_view(user, doc), reset=was_reset)
