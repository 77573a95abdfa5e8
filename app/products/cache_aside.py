"""
Cache-Aside 访问层（核心）。

两条路径：
- **读**：先查缓存；命中且能解码 -> 直接返回（不碰存储）；否则查存储，非空结果回填缓存
- **写**：先改存储；成功后再删除受影响的缓存 key；存储失败则不做任何失效，原样抛出

并发说明：
- 不加锁、不做事务。一个请求"写存储"到"删缓存"之间，并发的读可能拿到旧值，
  直到删除完成或 TTL 到期。这是 cache-aside 可接受的陈旧窗口。
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from pydantic import TypeAdapter

from app.infra.cache import CachePort
from app.products.codec import decode
from app.products.codec import encode
from app.products.models import Source

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRODUCTS_ALL_KEY = "products:all"
DEFAULT_TTL_SECONDS = 300


def product_key(product_id: int) -> str:
    return f"product:{product_id}"


class CacheAsideAccessor:
    """按 key + fetch 函数参数化的读穿透 / 写失效编排。"""

    def __init__(self, cache: CachePort, log: logging.Logger | None = None) -> None:
        self._cache = cache
        self._logger = log or logger

    async def read_through(
        self,
        key: str,
        ttl_seconds: int,
        fetch: Callable[[], Awaitable[T | None]],
        shape: TypeAdapter[T],
    ) -> tuple[T | None, Source]:
        """
        读穿透。

        - 命中：返回 `(value, "cache")`
        - 未命中/脏数据：调用 `fetch()`；`None` 表示 not-found，不缓存负结果
        - 回填缓存是 best-effort，失败只记日志
        """
        cached = await self._cache.get_value(key, lambda raw: decode(raw, shape))
        if cached is not None:
            self._logger.info(f"Cache hit: key={key}")
            return cached, "cache"

        self._logger.info(f"Cache miss: key={key}")
        value = await fetch()
        if value is None:
            return None, "database"

        await self._cache.set(key, encode(value, shape), ttl_seconds)
        return value, "database"

    async def mutate_and_invalidate(
        self,
        mutate: Callable[[], Awaitable[T]],
        keys_to_invalidate: Iterable[str],
    ) -> T:
        """
        先写存储再删缓存。

        `mutate()` 抛错时直接向上传播，不删除任何 key。
        每个 key 的删除互不影响（单个失败不会阻止其它 key）。
        """
        result = await mutate()
        for key in keys_to_invalidate:
            if not await self._cache.delete(key):
                self._logger.warning(f"Invalidation skipped for key={key}; entry expires by TTL")
        return result


def invalidation_keys(product_id: int | None = None) -> list[str]:
    """写操作需要失效的 key：总是包含集合 key，有 id 时再加单条 key。"""
    keys: list[str] = [PRODUCTS_ALL_KEY]
    if product_id is not None:
        keys.append(product_key(product_id))
    return keys
