"""
FastAPI 服务入口。

这里做三件事：
- 加载配置（严格校验环境变量）
- 组装外部依赖（Postgres 存储 / Redis 缓存 / Cache-Aside accessor）
- 装配路由（health + products），见 `app/bootstrap.py`

注意：
- 缓存逻辑不写在这里（由 `products/cache_aside.py` 负责）
- Postgres 连接池与 Redis client 进程内复用，startup 时打开、shutdown 时关闭
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.bootstrap import create_app
from app.config import AppConfig
from app.config import load_config_from_env
from app.infra.cache import CachePort
from app.infra.redis_cache import RedisCache
from app.infra.redis_cache import create_redis_client
from app.products.cache_aside import CacheAsideAccessor
from app.products.service import ProductService
from app.storage.pg import PostgresProductStore
from app.storage.pg import create_pool
from app.storage.pg import ensure_schema

logger = logging.getLogger(__name__)


def build_app(config: AppConfig | None = None) -> FastAPI:
    """创建并返回 FastAPI app（便于测试/复用）。"""

    # 1) 配置：缺失会直接抛错，启动失败（这是期望行为）
    if config is None:
        config = load_config_from_env(os.environ)
    logging.basicConfig(level=config.log_level.upper())

    # 2) 存储与缓存：都是进程级共享句柄
    pool = create_pool(config.database_url, max_size=config.db_pool_max_size)
    store = PostgresProductStore(pool=pool)
    redis_cache = RedisCache(create_redis_client(config.redis_url, socket_timeout=config.cache_timeout_seconds))
    cache = CachePort(
        backend=redis_cache,
        timeout_seconds=config.cache_timeout_seconds,
        log=logging.getLogger("app.infra.cache"),
    )

    # 3) 核心：cache-aside accessor + 业务操作
    accessor = CacheAsideAccessor(cache=cache, log=logging.getLogger("app.products.cache_aside"))
    service = ProductService(store=store, accessor=accessor, ttl_seconds=config.cache_ttl_seconds)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await pool.open(wait=True)
        await ensure_schema(store)
        logger.info(f"Product API ready: cache_ttl={config.cache_ttl_seconds}s timeout={config.cache_timeout_seconds}s")
        try:
            yield
        finally:
            await redis_cache.close()
            await pool.close()

    return create_app(service=service, lifespan=lifespan, error_log=logging.getLogger("app.http.errors"))


def main() -> None:
    config = load_config_from_env(os.environ)
    uvicorn.run(build_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
