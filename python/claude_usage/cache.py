"""Key-value cache for upstream responses and rendered output.

Entries are stored whole and overwritten on refresh; there is no eviction.
An entry is served only while it is younger than its TTL and its fingerprint
matches the caller's.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

FETCH_KEY = "fetch"
MODELS_KEY = "models"
OUTPUT_PREFIX = "output:"


class CacheEntry(BaseModel):
    """A cached payload with its freshness metadata."""

    model_config = ConfigDict(frozen=True)

    computed_at: float = Field(description="Unix timestamp of computation")
    ttl: int = Field(description="Seconds the entry stays fresh")
    fingerprint: str = Field(default="", description="Hash of the inputs")
    payload: bytes

    def age(self, now: float) -> float:
        return now - self.computed_at

    def is_fresh(self, now: float, fingerprint: str = "") -> bool:
        return self.age(now) < self.ttl and self.fingerprint == fingerprint


class Cache(ABC):
    """Base class for cache backends."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry, fresh or not."""
        ...

    @abstractmethod
    def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def entries(self) -> dict[str, CacheEntry]: ...

    def clear(self) -> None:
        for key in list(self.entries()):
            self.delete(key)

    def delete_prefix(self, prefix: str) -> None:
        for key in list(self.entries()):
            if key.startswith(prefix):
                self.delete(key)

    def lookup(self, key: str, now: float, fingerprint: str = "") -> bytes | None:
        """Return the payload if the entry is fresh for this fingerprint."""
        entry = self.get(key)
        if entry is None:
            logger.debug("cache miss: %s", key)
            return None
        if not entry.is_fresh(now, fingerprint):
            logger.debug("cache stale: %s (age %.0fs)", key, entry.age(now))
            return None
        logger.debug("cache hit: %s", key)
        return entry.payload

    def store(
        self, key: str, payload: bytes, now: float, ttl: int, fingerprint: str = ""
    ) -> None:
        self.put(
            key,
            CacheEntry(
                computed_at=now, ttl=ttl, fingerprint=fingerprint, payload=payload
            ),
        )


class MemoryCache(Cache):
    """In-process cache, for tests and --no-cache runs."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def entries(self) -> dict[str, CacheEntry]:
        return dict(self._entries)


class SqliteCache(Cache):
    """Cache backed by a single SQLite file.

    Database errors are logged and treated as misses; the widget still
    renders without a cache.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, timeout=5.0)
        ensure_schema(conn)
        return conn

    def get(self, key: str) -> CacheEntry | None:
        if not self.path.exists():
            return None
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT computed_at, ttl, fingerprint, payload FROM cache"
                    " WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("cache read failed for %s: %s", key, exc)
            return None
        if row is None:
            return None
        computed_at, ttl, fingerprint, payload = row
        return CacheEntry(
            computed_at=computed_at, ttl=ttl, fingerprint=fingerprint, payload=payload
        )

    def put(self, key: str, entry: CacheEntry) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO cache"
                    " (key, computed_at, ttl, fingerprint, payload)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (key, entry.computed_at, entry.ttl, entry.fingerprint, entry.payload),
                )
        except (sqlite3.Error, OSError) as exc:
            logger.warning("cache write failed for %s: %s", key, exc)

    def delete(self, key: str) -> None:
        if not self.path.exists():
            return
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM cache WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            logger.warning("cache delete failed for %s: %s", key, exc)

    def entries(self) -> dict[str, CacheEntry]:
        if not self.path.exists():
            return {}
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT key, computed_at, ttl, fingerprint, payload FROM cache"
                    " ORDER BY key"
                ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("cache listing failed: %s", exc)
            return {}
        return {
            key: CacheEntry(
                computed_at=computed_at,
                ttl=ttl,
                fingerprint=fingerprint,
                payload=payload,
            )
            for key, computed_at, ttl, fingerprint, payload in rows
        }

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the cache table if missing.

    Schema: (key, computed_at, ttl, fingerprint, payload)
    - computed_at: Unix timestamp
    - payload: raw bytes (upstream JSON or rendered output)
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS cache (
            key TEXT PRIMARY KEY,
            computed_at REAL NOT NULL,
            ttl INTEGER NOT NULL,
            fingerprint TEXT NOT NULL,
            payload BLOB NOT NULL
        )
    """)
