"""
Mock factory functions for Redis testing.

Provides pre-configured Redis mocks with the hash operations used by the
server-side session store.
"""

from unittest.mock import AsyncMock


def create_mock_redis_connection():
    """
    Creates a mock Redis connection with common methods.

    Returns:
        AsyncMock: Mocked Redis connection
    """
    redis_mock = AsyncMock()

    # Key operations
    redis_mock.expire = AsyncMock(return_value=True)
    redis_mock.delete = AsyncMock(return_value=1)

    # Hash operations
    redis_mock.hset = AsyncMock(return_value=1)
    redis_mock.hget = AsyncMock(return_value=None)
    redis_mock.hgetall = AsyncMock(return_value={})
    redis_mock.hdel = AsyncMock(return_value=1)

    # Connection management
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.close = AsyncMock()

    return redis_mock
