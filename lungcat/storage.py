"""Key-value storage backends for usage, budget and cache documents."""

from __future__ import annotations

import copy
import json
import sqlite3
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol

from lungcat.errors import PersistenceError


USAGE_KEY_PREFIX = "usage_"
CACHE_KEY_PREFIX = "cache_"
BUDGET_KEY = "budget_global"


def usage_key(user_id: str) -> str:
    return f"{USAGE_KEY_PREFIX}{user_id}"


def cache_key(user_id: str, content_type: str, language: str) -> str:
    return f"{CACHE_KEY_PREFIX}{user_id}_{content_type}_{language}"


class KeyValueStore(Protocol):
    """Document-style store interface.

    Values are JSON-compatible dicts. Implementations raise PersistenceError
    on any backend failure.
    """

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def set(self, key: str, value: Dict[str, Any]) -> None:
        ...

    def update(self, key: str, partial: Dict[str, Any]) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...

    def keys(self, prefix: str = "") -> List[str]:
        ...


class InMemoryStore:
    """In-memory storage backend (default)."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._docs.get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            self._docs[key] = copy.deepcopy(value)

    def update(self, key: str, partial: Dict[str, Any]) -> None:
        with self._lock:
            doc = self._docs.setdefault(key, {})
            doc.update(copy.deepcopy(partial))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._docs.pop(key, None) is not None

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._docs if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._docs)


class SQLiteStore:
    """SQLite-backed storage backend. Documents are stored as JSON text."""

    def __init__(self, db_path: str = "lungcat.db"):
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._lock = Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM documents WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError("get", key, str(exc)) from exc
        if not row:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            raise PersistenceError("get", key, f"corrupt document: {exc}") from exc

    def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            payload = json.dumps(value)
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO documents (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value
                    """,
                    (key, payload),
                )
                self._conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise PersistenceError("set", key, str(exc)) from exc

    def update(self, key: str, partial: Dict[str, Any]) -> None:
        doc = self.get(key) or {}
        doc.update(partial)
        self.set(key, doc)

    def delete(self, key: str) -> bool:
        try:
            with self._lock:
                cur = self._conn.execute("DELETE FROM documents WHERE key = ?", (key,))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceError("delete", key, str(exc)) from exc
        return cur.rowcount > 0

    def keys(self, prefix: str = "") -> List[str]:
        # LIKE treats _ as a wildcard, so filter the prefix in Python.
        try:
            with self._lock:
                rows = self._conn.execute("SELECT key FROM documents ORDER BY key").fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError("keys", prefix, str(exc)) from exc
        return [row["key"] for row in rows if row["key"].startswith(prefix)]

    def close(self) -> None:
        self._conn.close()
