"""
全局错误边界。

- 请求校验失败（FastAPI `RequestValidationError`）-> 400，带字段级错误
- `ProductNotFoundError`（update/delete 目标不存在）-> 404
- 存储层约束冲突（psycopg `IntegrityError` / `DataError`）-> 400，缓存不失效
- 其它未处理异常 -> 记 error 日志 + 500，不向调用方泄露内部细节
"""

from __future__ import annotations

import logging

import psycopg
from fastapi import FastAPI
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.products.store import ProductNotFoundError

logger = logging.getLogger(__name__)


def install_error_handlers(app: FastAPI, log: logging.Logger | None = None) -> None:
    boundary_logger = log or logger

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content=jsonable_encoder({"detail": errors}))

    @app.exception_handler(ProductNotFoundError)
    async def on_not_found(request: Request, exc: ProductNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Product not found"})

    @app.exception_handler(psycopg.IntegrityError)
    @app.exception_handler(psycopg.DataError)
    async def on_storage_rejected(request: Request, exc: psycopg.Error) -> JSONResponse:
        boundary_logger.warning(f"Storage rejected {request.method} {request.url.path}: {type(exc).__name__}")
        return JSONResponse(status_code=400, content={"detail": "Product violates a storage constraint"})

    @app.exception_handler(Exception)
    async def on_unhandled(request: Request, exc: Exception) -> JSONResponse:
        boundary_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
