from __future__ import annotations

"""
缓存抽象。

当前提供：
- `CacheBackend` Protocol：底层 KV 存储的原始 get/set/delete（可能抛错）
- `InMemoryCache`：便于本地运行/单元测试，支持 TTL 过期
- `CachePort`：对 backend 的容错包装（超时 + 捕获异常 + 记 warning 日志）

约定：
- 缓存不可用只影响性能，不影响正确性
- `CachePort` 的任何方法都不会把异常抛给调用方
"""

import logging
import time
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

import anyio

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheBackend(Protocol):
    """缓存后端协议（用于依赖倒置，方便替换 Redis/Memory）。"""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


@dataclass
class InMemoryCache:
    """内存缓存：只用于开发/测试。过期由 `clock`（单调时钟）判断。"""

    store: MutableMapping[str, tuple[bytes, float]] = field(default_factory=dict)
    clock: Callable[[], float] = time.monotonic

    async def get(self, key: str) -> bytes | None:
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            self.store.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.store[key] = (value, self.clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self.store.pop(key, None)


class CachePort:
    """
    容错缓存端口（Cache-Aside 访问层只依赖它）。

    - **超时**：每次调用都包在 `anyio.fail_after(timeout_seconds)` 里
    - **失败策略**：连接失败/超时/解码失败 -> 记 warning，get 返回 None，set/delete 返回 False
    """

    def __init__(self, backend: CacheBackend, timeout_seconds: float, log: logging.Logger | None = None) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._backend = backend
        self._timeout_seconds = timeout_seconds
        self._logger = log or logger

    async def get(self, key: str) -> bytes | None:
        try:
            with anyio.fail_after(self._timeout_seconds):
                return await self._backend.get(key)
        except Exception as exc:
            self._logger.warning(f"Cache get failed for key={key}: {exc!r}")
            return None

    async def get_value(self, key: str, decode: Callable[[bytes], T]) -> T | None:
        """
        读取并解码。解码失败（脏数据/类型不匹配）等同于未命中。

        `decode` 由调用方提供（通常是 codec 绑定了期望 shape 的函数）。
        """
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return decode(raw)
        except ValueError as exc:
            self._logger.warning(f"Cache entry for key={key} could not be decoded: {exc}")
            return None

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        try:
            with anyio.fail_after(self._timeout_seconds):
                await self._backend.set(key, value, ttl_seconds)
        except Exception as exc:
            self._logger.warning(f"Cache set failed for key={key}: {exc!r}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            with anyio.fail_after(self._timeout_seconds):
                await self._backend.delete(key)
        except Exception as exc:
            self._logger.warning(f"Cache delete failed for key={key}: {exc!r}")
            return False
        return True
