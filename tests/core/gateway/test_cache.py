"""Unit tests for the gateway response cache: key derivation and backends."""

import hashlib
from unittest.mock import Mock, patch

import pytest
import redis
from sqlmodel import Session, select

from translate_gateway.core.errors import CacheCorruptionError
from translate_gateway.core.gateway.cache import (
    DatabaseCache,
    MemoryCache,
    RedisCache,
    available_backends,
    derive_cache_key,
    fingerprint,
    get_cache,
    load_cached_response,
    memory_cache,
)
from translate_gateway.models import Cache
from tests.utils.project import create_random_project


def test_fingerprint_is_deterministic() -> None:
    assert fingerprint("Hello, world!", "es") == fingerprint("Hello, world!", "es")
    assert len(fingerprint("Hello, world!", "es")) == 64


def test_fingerprint_depends_on_text_and_target() -> None:
    base = fingerprint("Hello", "es")
    assert fingerprint("Hello", "fr") != base
    assert fingerprint("Hello!", "es") != base


def test_derive_cache_key() -> None:
    assert derive_cache_key("hi", "es") is None
    assert derive_cache_key("hi", "es", use_cache=True) == fingerprint("hi", "es")
    assert derive_cache_key("hi", "es", cache_key="mine") == "mine"
    assert derive_cache_key("hi", "es", cache_key="mine", use_cache=True) == "mine"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"'])
def test_load_cached_response_rejects_corrupt_values(raw: str) -> None:
    with pytest.raises(CacheCorruptionError):
        load_cached_response(raw)


def test_memory_cache_scoped_by_project() -> None:
    cache = MemoryCache()
    cache.set(1, "k", "one")
    cache.set(2, "k", "two")
    assert cache.get(1, "k") == "one"
    assert cache.get(2, "k") == "two"
    assert cache.get(3, "k") is None


def test_database_cache_set_is_idempotent_upsert(db: Session) -> None:
    project = create_random_project(db, is_public=True)
    cache = DatabaseCache(db)
    assert cache.get(project.id, "k") is None

    cache.set(project.id, "k", '{"v": 1}')
    cache.set(project.id, "k", '{"v": 1}')
    cache.set(project.id, "k", '{"v": 2}')

    rows = db.exec(select(Cache).where(Cache.project_id == project.id)).all()
    assert len(rows) == 1
    assert cache.get(project.id, "k") == '{"v": 2}'


def test_database_cache_does_not_leak_across_projects(db: Session) -> None:
    p1 = create_random_project(db, is_public=True)
    p2 = create_random_project(db, is_public=True)
    cache = DatabaseCache(db)
    cache.set(p1.id, "shared-key", "{}")
    assert cache.get(p2.id, "shared-key") is None


def test_redis_cache_fails_open_when_unavailable() -> None:
    with patch("translate_gateway.core.gateway.cache.get_redis", return_value=None):
        cache = RedisCache()
        cache.set(1, "k", "{}")
        assert cache.get(1, "k") is None


def test_redis_cache_uses_prefixed_key_and_ttl() -> None:
    client = Mock()
    client.get.return_value = "{}"
    with patch("translate_gateway.core.gateway.cache.get_redis", return_value=client):
        cache = RedisCache(ttl_seconds=60)
        cache.set(7, "k", "{}")
        assert cache.get(7, "k") == "{}"
    client.setex.assert_called_once_with("gateway:cache:7:k", 60, "{}")
    client.get.assert_called_once_with("gateway:cache:7:k")


def test_redis_cache_errors_are_misses() -> None:
    client = Mock()
    client.get.side_effect = redis.ConnectionError("down")
    with patch("translate_gateway.core.gateway.cache.get_redis", return_value=client):
        assert RedisCache().get(1, "k") is None


def test_get_cache_registry(db: Session) -> None:
    assert available_backends() == ["database", "memory", "redis"]
    assert get_cache("memory", db) is memory_cache
    assert isinstance(get_cache("Database", db), DatabaseCache)
    with pytest.raises(ValueError):
        get_cache("filesystem", db)


def test_fingerprint_matches_canonical_json_digest() -> None:
    """Sorted keys, no whitespace, UTF-8."""
    expected = hashlib.sha256(b'{"text":"Hello","to":"es"}').hexdigest()
    assert fingerprint("Hello", "es") == expected
    expected_utf8 = hashlib.sha256('{"text":"¡Hola!","to":"en"}'.encode()).hexdigest()
    assert fingerprint("¡Hola!", "en") == expected_utf8


def test_memory_cache_last_write_wins() -> None:
    cache = MemoryCache()
    cache.set(1, "k", '{"v": 1}')
    cache.set(1, "k", '{"v": 1}')
    assert cache.get(1, "k") == '{"v": 1}'
    cache.set(1, "k", '{"v": 2}')
    assert cache.get(1, "k") == '{"v": 2}'
