"""
Redis 缓存后端（生产可用的 `CacheBackend` 实现）。

说明：
- 只做协议适配：GET / SET EX / DEL，出错直接抛（由 `CachePort` 统一兜底）
- `redis.asyncio.Redis` 进程内共享，自带连接池，可并发复用
"""

from __future__ import annotations

import redis.asyncio as aioredis


def create_redis_client(url: str, socket_timeout: float) -> aioredis.Redis:
    """创建共享 Redis client（bytes 模式，不做 decode，编码交给 codec）。"""
    return aioredis.from_url(
        url,
        decode_responses=False,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        health_check_interval=15,
    )


class RedisCache:
    """基于 redis-py asyncio client 的缓存后端。"""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> bytes | None:
        value = await self._client.get(key)
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()
