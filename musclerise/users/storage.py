# -*- coding: utf-8 -*-
"""User storage: SQLite rows for credentials plus one versioned JSON document per user."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar
from uuid import uuid4

from ..app_db import db_conn, init_app_db
from ..errors import ConflictError, NotFoundError, StoreUnavailableError, ValidationError
from .models import UserDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MUTATE_ATTEMPTS = 3


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _dump(doc: UserDocument) -> str:
    return json.dumps(doc.model_dump(mode="json", by_alias=True), ensure_ascii=False, sort_keys=True)


class UserStore:
    """Per-user document store with compare-and-swap writes.

    Every logical update is a single ``UPDATE ... WHERE version = ?``; a
    concurrent writer makes the second update miss and raise ConflictError.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def init(self) -> None:
        try:
            init_app_db(self.db_path)
        except sqlite3.Error as exc:
            logger.error("Failed to initialize user store at %s: %s", self.db_path, exc)
            raise StoreUnavailableError("User store unavailable") from exc

    # ---- credentials ----

    def create_user(self, *, username: str, password_hash: str, document: UserDocument) -> Dict[str, Any]:
        user_id = str(uuid4())
        now = _utc_now()
        username_norm = username.strip()
        try:
            with db_conn(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO users (id, username, password_hash, created_at) VALUES (?, ?, ?, ?)",
                    (user_id, username_norm, password_hash, now),
                )
                conn.execute(
                    "INSERT INTO user_documents (user_id, version, payload_json, updated_at) VALUES (?, 0, ?, ?)",
                    (user_id, _dump(document), now),
                )
        except sqlite3.IntegrityError as exc:
            raise ValidationError("Username already registered", fields=[{"field": "username"}]) from exc
        except sqlite3.Error as exc:
            logger.error("Failed to create user %s: %s", username_norm, exc)
            raise StoreUnavailableError("User store unavailable") from exc
        return {"id": user_id, "username": username_norm, "password_hash": password_hash, "created_at": now}

    def _fetch_user(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        try:
            with db_conn(self.db_path) as conn:
                row = conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()
                return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to read user by %s: %s", column, exc)
            raise StoreUnavailableError("User store unavailable") from exc

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return self._fetch_user("username", username.strip())

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._fetch_user("id", user_id)

    # ---- documents ----

    def load(self, user_id: str) -> Tuple[UserDocument, int]:
        try:
            with db_conn(self.db_path) as conn:
                row = conn.execute(
                    "SELECT version, payload_json FROM user_documents WHERE user_id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Failed to load document for %s: %s", user_id, exc)
            raise StoreUnavailableError("User store unavailable") from exc
        if not row:
            raise NotFoundError("User not found")
        doc = UserDocument.model_validate(json.loads(row["payload_json"]))
        return doc, int(row["version"])

    def save(self, user_id: str, doc: UserDocument, expected_version: int) -> int:
        try:
            with db_conn(self.db_path) as conn:
                cur = conn.execute(
                    """
                    UPDATE user_documents
                    SET payload_json = ?, version = version + 1, updated_at = ?
                    WHERE user_id = ? AND version = ?
                    """,
                    (_dump(doc), _utc_now(), user_id, expected_version),
                )
                if cur.rowcount == 1:
                    return expected_version + 1
                row = conn.execute(
                    "SELECT version FROM user_documents WHERE user_id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Failed to save document for %s: %s", user_id, exc)
            raise StoreUnavailableError("User store unavailable") from exc
        if not row:
            raise NotFoundError("User not found")
        raise ConflictError(expected=expected_version, current=int(row["version"]))

    def mutate(
        self,
        user_id: str,
        fn: Callable[[UserDocument], T],
        *,
        attempts: int = DEFAULT_MUTATE_ATTEMPTS,
    ) -> Tuple[UserDocument, T]:
        """Read-modify-write ``fn`` against the latest document.

        ``fn`` edits the document in place and may raise to abort. Unchanged
        documents are not written. On a version conflict the whole function is
        re-run against the fresh document, so guards inside ``fn`` see the
        concurrent writer's result.
        """
        attempt = 0
        while True:
            attempt += 1
            doc, version = self.load(user_id)
            before = _dump(doc)
            result = fn(doc)
            if _dump(doc) == before:
                return doc, result
            try:
                self.save(user_id, doc, version)
                return doc, result
            except ConflictError as exc:
                logger.info("Version conflict for %s (attempt %s): %s", user_id, attempt, exc)
                if attempt >= attempts:
                    raise

    def all_documents(self) -> List[Tuple[Dict[str, Any], UserDocument]]:
        try:
            with db_conn(self.db_path) as conn:
                rows = conn.execute(
                    """
                    SELECT u.id, u.username, u.created_at, d.payload_json
                    FROM users u JOIN user_documents d ON d.user_id = u.id
                    ORDER BY u.created_at ASC
                    """
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Failed to list user documents: %s", exc)
            raise StoreUnavailableError("User store unavailable") from exc
        out: List[Tuple[Dict[str, Any], UserDocument]] = []
        for row in rows:
            user = {"id": row["id"], "username": row["username"], "created_at": row["created_at"]}
            out.append((user, UserDocument.model_validate(json.loads(row["payload_json"]))))
        return out

    def rank(self, user_id: str) -> Tuple[int, int]:
        """(position, total) by coins, highest first."""
        entries = sorted(
            ((user["id"], doc.coins) for user, doc in self.all_documents()),
            key=lambda item: item[1],
            reverse=True,
        )
        total = len(entries)
        for idx, (uid, _) in enumerate(entries, start=1):
            if uid == user_id:
                return idx, total
        return total, total
