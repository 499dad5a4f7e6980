"""Logging wrapper around the Redis client, enabled with ``REDIS_DEBUG=1``."""

import asyncio
import logging
from typing import Any

_MAX_ARG_LEN = 200


def _get_pool_stats(client) -> dict[str, Any]:
    pool = getattr(client, "connection_pool", None)
    if not pool:
        return {}
    stats: dict[str, Any] = {"max": getattr(pool, "max_connections", None)}
    in_use = getattr(pool, "_in_use_connections", None)
    if in_use is not None:
        stats["in_use"] = len(in_use)
    return stats


def _short(value: Any) -> Any:
    if isinstance(value, str) and len(value) > _MAX_ARG_LEN:
        return value[:_MAX_ARG_LEN] + "..."
    return value


class RedisDebugWrapper:
    """Proxies a Redis client, logging each awaited command and any failure."""

    def __init__(self, inner, logger: logging.Logger):
        self._inner = inner
        self._logger = logger

    @property
    def connection_pool(self):
        return getattr(self._inner, "connection_pool", None)

    def __getattr__(self, name: str):
        attr = getattr(self._inner, name)
        if not asyncio.iscoroutinefunction(attr):
            return attr

        async def _wrapped(*args, **kwargs):
            self._logger.debug(
                "redis.%s args=%s pool=%s",
                name,
                tuple(_short(a) for a in args),
                _get_pool_stats(self._inner),
            )
            try:
                return await attr(*args, **kwargs)
            except Exception as e:
                self._logger.warning("redis.%s error=%r pool=%s", name, e, _get_pool_stats(self._inner))
                raise

        return _wrapped


def wrap_redis_client(client, logger: logging.Logger) -> RedisDebugWrapper:
    return RedisDebugWrapper(client, logger)
