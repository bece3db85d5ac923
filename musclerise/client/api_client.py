# -*- coding: utf-8 -*-
"""HTTP client for the MuscleRise API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class MuscleRiseClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            timeout=timeout if timeout is not None else settings.http_timeout_sec,
            transport=transport,
            follow_redirects=True,
        )

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        resp = await self._client.request(method, path, json=json, headers=self._headers(headers))
        if resp.status_code >= 400:
            try:
                body = resp.json()
                detail = body.get("detail", body) if isinstance(body, dict) else body
            except ValueError:
                detail = resp.text
            logger.debug("%s %s -> %s %s", method, path, resp.status_code, detail)
            raise ApiError(resp.status_code, detail)
        if not resp.content:
            return {}
        return resp.json()

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        data = await self._request("POST", "/api/auth/login", json={"username": username, "password": password})
        self.token = data.get("token") or self.token
        return data

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/auth/me")

    async def complete_workout(
        self,
        exercises: List[Dict[str, Any]],
        *,
        plan_id: Optional[str] = None,
        total_calories: Optional[float] = None,
        duration: Optional[int] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"exercises": exercises}
        if plan_id:
            body["planId"] = plan_id
        if total_calories is not None:
            body["totalCalories"] = total_calories
        if duration is not None:
            body["duration"] = duration
        return await self._request("POST", "/api/workouts/complete", json=body)

    async def workout_history(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/workouts/history")

    async def today_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/workouts/today")

    async def delete_workout(self, workout_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/workouts/{workout_id}")

    async def push_state(self, user_id: str, payload: Dict[str, Any], *, idempotency_key: str) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/api/users/{user_id}",
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
        )

    async def rank(self, user_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/users/{user_id}/rank")

    async def aclose(self) -> None:
        await self._client.aclose()
