"""
Backing Store 端口（唯一的数据真相来源）。

- `ProductStore` Protocol：accessor / service 只依赖这个接口
- `InMemoryProductStore`：本地运行/单元测试用
- PostgreSQL 实现见 `app/storage/pg.py`
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Protocol

from app.products.models import Product


class ProductNotFoundError(LookupError):
    """update/delete 的目标 id 不存在。"""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class ProductStore(Protocol):
    async def list_all(self) -> list[Product]: ...

    async def find_by_id(self, product_id: int) -> Product | None: ...

    async def insert(self, name: str, price: Decimal, stock: int) -> Product: ...

    async def update(self, product_id: int, name: str, price: Decimal, stock: int) -> Product: ...

    async def delete(self, product_id: int) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryProductStore:
    """dict 存储：id 从 1 自增；返回副本，调用方改不到内部行。"""

    def __init__(self, rows: Sequence[Product] = (), clock: Callable[[], datetime] = _utcnow) -> None:
        self._rows: dict[int, Product] = {row.id: row.model_copy() for row in rows}
        self._next_id = max(self._rows, default=0) + 1
        self._clock = clock
        self._lock = threading.Lock()

    async def list_all(self) -> list[Product]:
        with self._lock:
            return [self._rows[key].model_copy() for key in sorted(self._rows)]

    async def find_by_id(self, product_id: int) -> Product | None:
        with self._lock:
            row = self._rows.get(product_id)
            return row.model_copy() if row is not None else None

    async def insert(self, name: str, price: Decimal, stock: int) -> Product:
        with self._lock:
            product = Product(id=self._next_id, name=name, price=price, stock=stock, created_at=self._clock())
            self._rows[product.id] = product
            self._next_id += 1
            return product.model_copy()

    async def update(self, product_id: int, name: str, price: Decimal, stock: int) -> Product:
        with self._lock:
            row = self._rows.get(product_id)
            if row is None:
                raise ProductNotFoundError(product_id)
            updated = row.model_copy(update={"name": name, "price": price, "stock": stock})
            self._rows[product_id] = updated
            return updated.model_copy()

    async def delete(self, product_id: int) -> None:
        with self._lock:
            if self._rows.pop(product_id, None) is None:
                raise ProductNotFoundError(product_id)
