"""
Session stores remembering the last filter and limit of each listing.

Both stores address values by dot-joined paths such as
``FILTER_.posts.index``. Reads of missing paths return None.
"""

import json
from collections.abc import MutableMapping
from typing import Any

from redis.asyncio import Redis

from listing_filters.settings import app_settings


def _split(path: str) -> list[str]:
    return path.split(".")


class DictSessionStore:
    """
    Session store over a mutable mapping.

    Values are nested along the path, so ``write("FILTER_.posts.index", v)``
    sets ``session["FILTER_"]["posts"]["index"] = v``. Works with the
    Starlette ``request.session`` dict, which is persisted in a signed
    cookie by ``SessionMiddleware``.

    Example:
        ```python
        store = DictSessionStore(request.session)
        await store.write("LIMIT_.posts.index", 50)
        await store.read("LIMIT_.posts.index")  # 50
        ```
    """

    def __init__(self, data: MutableMapping[str, Any] | None = None):
        self.data: MutableMapping[str, Any] = {} if data is None else data

    async def read(self, path: str) -> Any:
        node: Any = self.data
        for key in _split(path):
            if not isinstance(node, MutableMapping) or key not in node:
                return None
            node = node[key]
        return node

    async def write(self, path: str, value: Any) -> None:
        *parents, leaf = _split(path)
        node = self.data
        for key in parents:
            child = node.get(key)
            if not isinstance(child, MutableMapping):
                child = {}
                node[key] = child
            node = child
        node[leaf] = value

    async def delete(self, path: str) -> None:
        *parents, leaf = _split(path)
        node: Any = self.data
        for key in parents:
            if not isinstance(node, MutableMapping) or key not in node:
                return
            node = node[key]
        if isinstance(node, MutableMapping):
            node.pop(leaf, None)


class RedisSessionStore:
    """
    Server-side session store keeping one Redis hash per session.

    The hash key is ``SESSION_REDIS_KEY_PREFIX`` + session id, hash fields
    are the dot-joined paths and values are JSON. Every write refreshes
    the TTL of the whole session.

    Example:
        ```python
        from listing_filters.storage.redis import get_session_redis

        store = RedisSessionStore(await get_session_redis(), session_id)
        await store.write("FILTER_.posts.index", {"slug": "abcdefghikmnop"})
        ```
    """

    def __init__(
        self,
        redis: Redis,
        session_id: str,
        ttl_seconds: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            redis: Redis connection (with ``decode_responses=True``).
            session_id: Identifier of the user session.
            ttl_seconds: Session lifetime, defaults to
                app_settings.SESSION_TTL_SECONDS.
        """
        self.redis = redis
        self.key = f"{app_settings.SESSION_REDIS_KEY_PREFIX}{session_id}"
        self.ttl_seconds = (
            app_settings.SESSION_TTL_SECONDS
            if ttl_seconds is None
            else ttl_seconds
        )

    async def read(self, path: str) -> Any:
        raw = await self.redis.hget(self.key, path)
        if raw is None:
            return None
        return json.loads(raw)

    async def write(self, path: str, value: Any) -> None:
        await self.redis.hset(
            self.key, path, json.dumps(value, separators=(",", ":"))
        )
        await self.redis.expire(self.key, self.ttl_seconds)

    async def delete(self, path: str) -> None:
        await self.redis.hdel(self.key, path)
