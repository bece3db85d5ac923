# -*- coding: utf-8 -*-
"""Auth: password hashing + JWT + FastAPI helpers.

This is the identity provider the workout core trusts: it turns a bearer
token into a verified user row and nothing more.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request

from ..config import settings
from ..deps import get_store
from ..errors import AuthError, NotFoundError
from ..users.storage import UserStore

# Password hashing (stdlib pbkdf2_hmac).
_PBKDF2_ALG = "sha256"
_PBKDF2_ITERATIONS = 200_000


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac(_PBKDF2_ALG, password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"pbkdf2_{_PBKDF2_ALG}${_PBKDF2_ITERATIONS}${_b64url_encode(salt)}${_b64url_encode(dk)}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iter_s, salt_b64, dk_b64 = password_hash.split("$", 3)
        if not scheme.startswith("pbkdf2_"):
            return False
        alg = scheme.split("_", 1)[1]
        actual = hashlib.pbkdf2_hmac(alg, password.encode("utf-8"), _b64url_decode(salt_b64), int(iter_s))
        return hmac.compare_digest(actual, _b64url_decode(dk_b64))
    except (ValueError, TypeError, binascii.Error):
        return False


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, user_id: str, username: str) -> str:
    now = _utc_now()
    exp = now + timedelta(days=int(settings.token_ttl_days))
    payload = {
        "sub": user_id,
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return _jwt_encode(payload, settings.jwt_secret)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        payload = _jwt_decode(token, settings.jwt_secret)
    except (ValueError, UnicodeDecodeError) as exc:
        raise AuthError("Invalid token") from exc
    if int(payload.get("exp") or 0) < int(_utc_now().timestamp()):
        raise AuthError("Token expired")
    return payload


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode((data + pad).encode("ascii"))


def _jwt_encode(payload: Dict[str, Any], secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{_b64url_encode(sig)}"


def _jwt_decode(token: str, secret: str) -> Dict[str, Any]:
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("invalid token")
    header_b64, payload_b64, sig_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    expected_sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    if not hmac.compare_digest(expected_sig, _b64url_decode(sig_b64)):
        raise ValueError("bad signature")
    payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("bad payload")
    return payload


def get_token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1].strip()
        return token or None
    return None


def get_current_user_from_request(request: Request, store: UserStore) -> Dict[str, Any]:
    # If middleware already authenticated, reuse it.
    user = getattr(request.state, "user", None)
    if user:
        return user

    token = get_token_from_request(request)
    if not token:
        raise AuthError("Not authenticated")

    payload = decode_token(token)
    user_id = str(payload.get("sub") or "")
    if not user_id:
        raise AuthError("Invalid token")

    user_row = store.get_user_by_id(user_id)
    if not user_row:
        # Token checked out; the account behind it is gone.
        raise NotFoundError("User not found")

    request.state.user = user_row
    return user_row


def get_current_user(request: Request, store: UserStore = Depends(get_store)) -> Dict[str, Any]:
    return get_current_user_from_request(request, store)
