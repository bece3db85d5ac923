# -*- coding: utf-8 -*-
"""Domain error taxonomy shared by the server endpoints and the client core."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class MuscleRiseError(Exception):
    """Base class; ``status_code`` is the HTTP status the API layer reports."""

    status_code = 500
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class ValidationError(MuscleRiseError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, message: str, *, fields: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self.fields
        return payload


class AlreadyCompletedError(MuscleRiseError):
    status_code = 400
    code = "already_completed"

    def __init__(self, plan_id: str, exercise_id: str) -> None:
        super().__init__(f"Exercise {exercise_id} in plan {plan_id} is already completed for today")
        self.plan_id = plan_id
        self.exercise_id = exercise_id


class NotFoundError(MuscleRiseError):
    status_code = 404
    code = "not_found"


class AuthError(MuscleRiseError):
    status_code = 401
    code = "not_authenticated"


class ForbiddenError(MuscleRiseError):
    status_code = 403
    code = "forbidden"


class ConflictError(MuscleRiseError):
    """Raised when the optimistic version check on a user document fails."""

    status_code = 409
    code = "conflict"

    def __init__(self, *, expected: int, current: Optional[int]) -> None:
        super().__init__(f"Document changed (expected version={expected}, current version={current})")
        self.expected = expected
        self.current = current


class StoreUnavailableError(MuscleRiseError):
    status_code = 503
    code = "store_unavailable"
