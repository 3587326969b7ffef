"""Tests for the shared Redis client (get_redis, ping, reset)."""

from unittest.mock import Mock, patch

import pytest
import redis

from translate_gateway.core import redis_client
from translate_gateway.core.config import settings


def test_get_redis_disabled_returns_none() -> None:
    assert redis_client.get_redis() is None
    assert redis_client.ping() is False


def test_get_redis_connects_with_bounded_timeouts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "CACHE_ENABLED", True)
    monkeypatch.setattr(settings, "REDIS_SOCKET_TIMEOUT_SECONDS", 1.5)
    client = Mock()
    client.ping.return_value = True
    with patch.object(redis.Redis, "from_url", return_value=client) as from_url:
        assert redis_client.get_redis() is client
        assert redis_client.get_redis() is client
    from_url.assert_called_once()
    kwargs = from_url.call_args.kwargs
    assert kwargs["socket_timeout"] == 1.5
    assert kwargs["socket_connect_timeout"] == 1.5
    assert kwargs["decode_responses"] is True


def test_get_redis_unreachable_returns_none_until_reset(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "CACHE_ENABLED", True)
    down = Mock()
    down.ping.side_effect = redis.ConnectionError("refused")
    up = Mock()
    up.ping.return_value = True
    with patch.object(redis.Redis, "from_url", side_effect=[down, up]):
        assert redis_client.get_redis() is None
        assert redis_client.get_redis() is None
        redis_client.reset()
        assert redis_client.get_redis() is up
