"""
Redis Connection Pool Management.

One process-wide connection pool shared by the progress tracker, the API
health check and Celery tasks.

Business Rules:
    - Host/port from REDIS_HOST / REDIS_PORT (localhost:6379)
    - Max connections: REDIS_MAX_CONNECTIONS (10)
    - Socket timeout: REDIS_TIMEOUT seconds (5)
    - PING attempts: REDIS_RETRY_ATTEMPTS (3), backoff 1s, 2s, 4s
    - Responses decoded to str

Error Handling:
    - get_redis_client() raises RedisError once every PING attempt failed
    - health_check() never raises, it returns False
    - close_connections() is idempotent

Examples:
    >>> client = get_redis_client()
    >>> client.set("key", "value")
    >>> health_check()
    True
    >>> close_connections()
"""

import logging
import os
import threading
import time
from typing import Optional

from redis import ConnectionPool, Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

logger = logging.getLogger(__name__)

_redis_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def get_connection_pool(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: int = 0,
    max_connections: Optional[int] = None,
    timeout: Optional[int] = None,
) -> ConnectionPool:
    """
    Return the shared pool, creating it on first use.

    Arguments only apply to the call that creates the pool; later calls get
    the existing pool unchanged. No connection is opened here.
    """
    global _redis_pool

    if _redis_pool is None:
        with _pool_lock:
            if _redis_pool is None:
                redis_host = host or os.getenv("REDIS_HOST", "localhost")
                redis_port = port or int(os.getenv("REDIS_PORT", "6379"))
                max_conn = max_connections or int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
                conn_timeout = timeout or int(os.getenv("REDIS_TIMEOUT", "5"))

                logger.info(
                    f"Creating Redis connection pool: host={redis_host}, port={redis_port}, "
                    f"db={db}, max_connections={max_conn}, timeout={conn_timeout}s"
                )
                _redis_pool = ConnectionPool(
                    host=redis_host,
                    port=redis_port,
                    db=db,
                    max_connections=max_conn,
                    socket_timeout=conn_timeout,
                    socket_connect_timeout=conn_timeout,
                    socket_keepalive=True,
                    decode_responses=True,
                )

    return _redis_pool


def get_redis_client(**pool_options) -> Redis:
    """
    Redis client on the shared pool, verified with PING.

    Args:
        **pool_options: Forwarded to get_connection_pool() (host, port, db, ...)

    Returns:
        Connected Redis client

    Raises:
        RedisError: If PING fails on every attempt
    """
    client = Redis(connection_pool=get_connection_pool(**pool_options))

    retry_attempts = int(os.getenv("REDIS_RETRY_ATTEMPTS", "3"))
    last_error: Optional[Exception] = None

    for attempt in range(retry_attempts):
        try:
            client.ping()
            logger.debug(f"Redis connection established (attempt {attempt + 1})")
            return client
        except (ConnectionError, TimeoutError) as e:
            last_error = e
            if attempt < retry_attempts - 1:
                delay = 2**attempt
                logger.warning(
                    f"Redis connection failed (attempt {attempt + 1}/{retry_attempts}): {e}. "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)
            else:
                logger.error(f"Redis connection failed after {retry_attempts} attempts: {e}")

    raise RedisError(
        f"Failed to connect to Redis after {retry_attempts} attempts. "
        f"Last error: {last_error}"
    )


def health_check() -> bool:
    """True if Redis answers PING, False on any Redis error."""
    try:
        if get_redis_client().ping():
            return True
        logger.warning("Redis health check: PING returned False")
        return False
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False


def close_connections() -> None:
    """Disconnect the pool and forget it (called on API shutdown)."""
    global _redis_pool

    with _pool_lock:
        if _redis_pool is None:
            logger.debug("Redis connection pool already closed or not initialized")
            return

        logger.info("Closing Redis connection pool")
        try:
            _redis_pool.disconnect()
        except RedisError as e:
            logger.error(f"Error closing Redis connection pool: {e}")
        finally:
            _redis_pool = None
