"""
Gateway response cache: lookaside store for translation responses.

Backends share one interface (get/set by project scope + key) and are picked
by name from a fixed registry:

- memory:   process-local dict; not shared across processes, lost on restart.
- database: ``cache`` table, unique (project_id, name); set is an upsert that
            refreshes updated_at.
- redis:    shared Redis (``gateway:cache:<project_id>:<key>``). When Redis is
            unavailable lookups miss and stores are skipped.

Values are opaque JSON strings; load_cached_response raises
CacheCorruptionError for entries that do not decode.
"""

import hashlib
import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import redis
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.core.errors import CacheCorruptionError
from translate_gateway.core.redis_client import get_redis
from translate_gateway.models import Cache

logger = logging.getLogger(__name__)

_REDIS_KEY_PREFIX = "gateway:cache:"


class CacheBackend(Protocol):
    def get(self, project_id: int, key: str) -> str | None: ...

    def set(self, project_id: int, key: str, value: str) -> None: ...


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def fingerprint(text: str, to: str) -> str:
    """Hex SHA-256 of the canonical JSON form of {text, to} (sorted keys, no spaces)."""
    canonical = json.dumps(
        {"text": text, "to": to},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def derive_cache_key(
    text: str, to: str, cache_key: str | None = None, use_cache: bool = False
) -> str | None:
    """
    Explicit cache_key wins verbatim. Otherwise a fingerprint when use_cache,
    else None (cache bypassed).
    """
    if cache_key:
        return cache_key
    if use_cache:
        return fingerprint(text, to)
    return None


def load_cached_response(raw: str) -> dict[str, Any]:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CacheCorruptionError("Cached response is corrupt") from e
    if not isinstance(value, dict):
        raise CacheCorruptionError("Cached response is corrupt")
    return value


def dump_cached_response(response: dict[str, Any]) -> str:
    return json.dumps(response, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class MemoryCache:
    """Process-local cache shared by all requests; last write wins."""

    def __init__(self) -> None:
        self._data: dict[tuple[int, str], str] = {}
        self._lock = threading.Lock()

    def get(self, project_id: int, key: str) -> str | None:
        with self._lock:
            return self._data.get((project_id, key))

    def set(self, project_id: int, key: str, value: str) -> None:
        with self._lock:
            self._data[(project_id, key)] = value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class DatabaseCache:
    """Durable per-project cache in the ``cache`` table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, project_id: int, key: str) -> str | None:
        stmt = select(Cache.value).where(
            Cache.project_id == project_id,
            Cache.name == key,
        )
        return self.session.exec(stmt).first()

    def set(self, project_id: int, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        dialect = self.session.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = insert(Cache).values(
                project_id=project_id,
                name=key,
                value=value,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["project_id", "name"],
                set_={"value": stmt.excluded.value, "updated_at": now},
            )
            self.session.connection().execute(stmt)
        else:
            row = self.session.exec(
                select(Cache).where(Cache.project_id == project_id, Cache.name == key)
            ).first()
            if row is None:
                row = Cache(project_id=project_id, name=key, value=value)
            else:
                row.value = value
                row.updated_at = now
            self.session.add(row)
        self.session.commit()


class RedisCache:
    """Shared cache through the process-wide Redis client."""

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = (
            settings.CACHE_REDIS_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )

    @staticmethod
    def _key(project_id: int, key: str) -> str:
        return f"{_REDIS_KEY_PREFIX}{project_id}:{key}"

    def get(self, project_id: int, key: str) -> str | None:
        r = get_redis()
        if r is None:
            logger.warning("Redis cache unavailable; treating lookup as miss")
            return None
        try:
            return r.get(self._key(project_id, key))
        except redis.RedisError as e:
            logger.warning("Redis cache get failed for %s: %s", key, e)
            return None

    def set(self, project_id: int, key: str, value: str) -> None:
        r = get_redis()
        if r is None:
            logger.warning("Redis cache unavailable; response not stored")
            return
        try:
            if self.ttl_seconds > 0:
                r.setex(self._key(project_id, key), self.ttl_seconds, value)
            else:
                r.set(self._key(project_id, key), value)
        except redis.RedisError as e:
            logger.warning("Redis cache set failed for %s: %s", key, e)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

memory_cache = MemoryCache()

_BACKENDS: dict[str, Callable[[Session], CacheBackend]] = {
    "memory": lambda session: memory_cache,
    "database": DatabaseCache,
    "redis": lambda session: RedisCache(),
}


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def get_cache(name: str, session: Session) -> CacheBackend:
    """Backend by registry name. Raises ValueError for unknown names."""
    factory = _BACKENDS.get((name or "").strip().lower())
    if factory is None:
        raise ValueError(
            f"Unknown cache backend {name!r}; expected one of {available_backends()}"
        )
    return factory(session)
