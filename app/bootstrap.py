"""
FastAPI app 装配（不读环境变量，便于测试直接注入 in-memory 依赖）。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from fastapi import FastAPI

from app.http.errors import install_error_handlers
from app.products.router import build_products_router
from app.products.service import ProductService

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def create_app(
    service: ProductService,
    lifespan: Lifespan | None = None,
    error_log: logging.Logger | None = None,
) -> FastAPI:
    """创建并返回 FastAPI app：health + /products + 错误边界。"""
    app = FastAPI(title="Product Cache API", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """健康检查：用于 k8s / LB 探活。"""
        return {"status": "ok"}

    app.include_router(build_products_router(service=service))
    install_error_handlers(app, log=error_log)
    return app
