"""
Redis Persistence

Connection pooling and job progress tracking.
"""

from nad_uploader.infrastructure.persistence.redis.connection import (
    close_connections,
    get_redis_client,
    health_check,
)
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

__all__ = [
    "RedisProgressTracker",
    "close_connections",
    "get_redis_client",
    "health_check",
]
