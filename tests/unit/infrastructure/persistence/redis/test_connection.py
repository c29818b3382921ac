"""
Tests for Redis Connection Pool Management.

Covers:
- Singleton connection pool
- Retry logic with exponential backoff
- Health check with PING
- Connection cleanup
"""

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError, RedisError

import nad_uploader.infrastructure.persistence.redis.connection as conn_module
from nad_uploader.infrastructure.persistence.redis.connection import (
    close_connections,
    get_connection_pool,
    get_redis_client,
    health_check,
)

MODULE = "nad_uploader.infrastructure.persistence.redis.connection"


@pytest.fixture(autouse=True)
def reset_singleton():
    """Reset singleton pool before and after each test."""
    conn_module._redis_pool = None
    yield
    conn_module._redis_pool = None


def test_get_connection_pool_is_singleton():
    with patch(f"{MODULE}.ConnectionPool") as pool_class:
        first = get_connection_pool()
        second = get_connection_pool()

    assert first is second
    pool_class.assert_called_once()
    assert pool_class.call_args.kwargs["decode_responses"] is True


def test_get_connection_pool_reads_environment(monkeypatch):
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")

    with patch(f"{MODULE}.ConnectionPool") as pool_class:
        get_connection_pool()

    assert pool_class.call_args.kwargs["host"] == "redis.internal"
    assert pool_class.call_args.kwargs["port"] == 6380


def test_get_redis_client_pings():
    with patch(f"{MODULE}.ConnectionPool"), patch(f"{MODULE}.Redis") as redis_class:
        client = MagicMock()
        client.ping.return_value = True
        redis_class.return_value = client

        assert get_redis_client() is client
        client.ping.assert_called_once()


def test_get_redis_client_retries_with_backoff(monkeypatch):
    monkeypatch.setenv("REDIS_RETRY_ATTEMPTS", "3")

    with patch(f"{MODULE}.ConnectionPool"), patch(f"{MODULE}.Redis") as redis_class, patch(
        f"{MODULE}.time.sleep"
    ) as sleep:
        client = MagicMock()
        client.ping.side_effect = [ConnectionError("refused"), ConnectionError("refused"), True]
        redis_class.return_value = client

        assert get_redis_client() is client

    assert [c[0][0] for c in sleep.call_args_list] == [1, 2]


def test_get_redis_client_raises_after_all_attempts(monkeypatch):
    monkeypatch.setenv("REDIS_RETRY_ATTEMPTS", "2")

    with patch(f"{MODULE}.ConnectionPool"), patch(f"{MODULE}.Redis") as redis_class, patch(
        f"{MODULE}.time.sleep"
    ):
        redis_class.return_value.ping.side_effect = ConnectionError("refused")

        with pytest.raises(RedisError, match="after 2 attempts"):
            get_redis_client()


def test_health_check_true():
    with patch(f"{MODULE}.get_redis_client") as get_client:
        get_client.return_value.ping.return_value = True
        assert health_check() is True


def test_health_check_false_on_error():
    with patch(f"{MODULE}.get_redis_client", side_effect=RedisError("down")):
        assert health_check() is False


def test_close_connections_is_idempotent():
    with patch(f"{MODULE}.ConnectionPool") as pool_class:
        get_connection_pool()
        close_connections()
        close_connections()

    pool_class.return_value.disconnect.assert_called_once()
    assert conn_module._redis_pool is None
