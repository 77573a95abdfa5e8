from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.infra.cache import CachePort
from app.infra.cache import InMemoryCache
from app.products.cache_aside import CacheAsideAccessor
from app.products.models import Product
from app.products.service import ProductService
from app.products.store import InMemoryProductStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class RecordingCache(InMemoryCache):
    """InMemoryCache，额外记录 set/delete 的 key。"""

    def __init__(self) -> None:
        super().__init__(store={}, clock=FakeClock())
        self.set_keys: list[str] = []
        self.deleted_keys: list[str] = []

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self.set_keys.append(key)
        await super().set(key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        self.deleted_keys.append(key)
        await super().delete(key)


class CountingStore(InMemoryProductStore):
    """InMemoryProductStore，统计读调用次数。"""

    def __init__(self, rows: list[Product] | None = None) -> None:
        super().__init__(rows=rows or [], clock=lambda: FIXED_NOW)
        self.list_calls = 0
        self.find_calls = 0

    async def list_all(self) -> list[Product]:
        self.list_calls += 1
        return await super().list_all()

    async def find_by_id(self, product_id: int) -> Product | None:
        self.find_calls += 1
        return await super().find_by_id(product_id)


def make_product(product_id: int = 1, name: str = "Widget", price: str = "9.99", stock: int = 10) -> Product:
    return Product(id=product_id, name=name, price=Decimal(price), stock=stock, created_at=FIXED_NOW)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def cache(backend: RecordingCache) -> CachePort:
    return CachePort(backend=backend, timeout_seconds=1.0)


@pytest.fixture
def accessor(cache: CachePort) -> CacheAsideAccessor:
    return CacheAsideAccessor(cache=cache)


@pytest.fixture
def store() -> CountingStore:
    return CountingStore(rows=[make_product()])


@pytest.fixture
def service(store: CountingStore, accessor: CacheAsideAccessor) -> ProductService:
    return ProductService(store=store, accessor=accessor, ttl_seconds=300)
