from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence


logger = logging.getLogger("he.cache")

PROPERTY_CACHE_TTL = timedelta(days=30)
CLIMATE_CACHE_TTL = timedelta(days=90)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Dict[str, Any]
    sources: List[str]
    expires_at: datetime
    updated_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class CacheStats:
    total: int
    expired: int
    valid: int

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "expired": self.expired, "valid": self.valid}


class LookupCache:
    """SQLite key -> payload store with a recorded expiry.

    Reads never mutate or delete rows. Freshness is the caller's decision;
    an expired row stays until the next ``put`` for the same key replaces it.
    """

    table = "lookup_cache"
    default_ttl = PROPERTY_CACHE_TTL

    def __init__(
        self,
        path: str,
        *,
        table: Optional[str] = None,
        ttl: Optional[timedelta] = None,
        now_fn: Callable[[], datetime] = utcnow,
    ) -> None:
        if table is not None:
            if not table.isidentifier():
                raise ValueError(f"invalid cache table name: {table!r}")
            self.table = table
        ttl = self.default_ttl if ttl is None else ttl
        if ttl.total_seconds() <= 0:
            raise ValueError("cache ttl must be positive")
        self.ttl = ttl
        self.now_fn = now_fn
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        # The API serves requests from worker threads.
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _init_schema(self) -> None:
        self.conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                cache_key TEXT PRIMARY KEY,
                payload_json TEXT NOT NULL,
                sources_json TEXT NOT NULL,
                expires_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self.conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{self.table}_expires ON {self.table}(expires_at)"
        )
        self.conn.commit()

    def get(self, key: str) -> Optional[CacheEntry]:
        row = self.conn.execute(
            f"SELECT cache_key, payload_json, sources_json, expires_at, updated_at "
            f"FROM {self.table} WHERE cache_key=?",
            (key,),
        ).fetchone()
        if not row:
            logger.debug("cache miss", extra={"table": self.table, "cache_key": key})
            return None
        return CacheEntry(
            key=row["cache_key"],
            payload=json.loads(row["payload_json"]),
            sources=list(json.loads(row["sources_json"])),
            expires_at=_parse_ts(row["expires_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def put(self, key: str, payload: Mapping[str, Any], sources: Sequence[str]) -> None:
        now = self.now_fn()
        expires_at = now + self.ttl
        self.conn.execute(
            f"""
            INSERT INTO {self.table} (cache_key, payload_json, sources_json, expires_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                payload_json=excluded.payload_json,
                sources_json=excluded.sources_json,
                expires_at=excluded.expires_at,
                updated_at=excluded.updated_at
            """,
            (
                key,
                json.dumps(dict(payload), sort_keys=True),
                json.dumps(list(sources)),
                expires_at.isoformat(),
                now.isoformat(),
            ),
        )
        self.conn.commit()
        logger.debug(
            "cache write",
            extra={"table": self.table, "cache_key": key, "expires_at": expires_at.isoformat()},
        )

    def stats(self) -> CacheStats:
        now = self.now_fn().isoformat()
        total = self.conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]
        expired = self.conn.execute(
            f"SELECT COUNT(*) FROM {self.table} WHERE expires_at <= ?", (now,)
        ).fetchone()[0]
        return CacheStats(total=int(total), expired=int(expired), valid=int(total) - int(expired))


class PropertyCache(LookupCache):
    """Keyed by the normalized "address|city|STATE|zip" string."""

    table = "property_cache"
    default_ttl = PROPERTY_CACHE_TTL


class ClimateCache(LookupCache):
    """Keyed by the bare five-digit ZIP."""

    table = "zipcode_cache"
    default_ttl = CLIMATE_CACHE_TTL


def get_cached_property_data(cache: PropertyCache, key: str) -> Optional[CacheEntry]:
    return cache.get(key)


def set_cached_property_data(
    cache: PropertyCache, key: str, payload: Mapping[str, Any], sources: Sequence[str]
) -> None:
    cache.put(key, payload, sources)


def get_cached_zip_data(cache: ClimateCache, zip_code: str) -> Optional[CacheEntry]:
    return cache.get(zip_code)


def set_cached_zip_data(
    cache: ClimateCache, zip_code: str, payload: Mapping[str, Any], sources: Sequence[str]
) -> None:
    cache.put(zip_code, payload, sources)
