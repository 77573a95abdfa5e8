"""
缓存值的序列化 codec（JSON bytes <-> Product / list[Product]）。

- **encode**：对所有合法 Product / Product 列表都成功（字段名用 wire 名，如 `createdAt`）
- **decode**：fail closed，格式错误/类型不匹配统一抛 `CodecDecodeError`
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from app.products.models import Product

T = TypeVar("T")

PRODUCT_SHAPE: TypeAdapter[Product] = TypeAdapter(Product)
PRODUCT_LIST_SHAPE: TypeAdapter[list[Product]] = TypeAdapter(list[Product])


class CodecDecodeError(ValueError):
    """缓存 bytes 无法还原为期望的类型。"""

    pass


def encode(value: Any, shape: TypeAdapter[Any]) -> bytes:
    return shape.dump_json(value, by_alias=True)


def decode(raw: bytes, shape: TypeAdapter[T]) -> T:
    try:
        return shape.validate_json(raw)
    except ValidationError as exc:
        raise CodecDecodeError(f"Cannot decode cached value: {exc.error_count()} error(s)") from exc
