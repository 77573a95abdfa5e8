"""
Product 业务操作（HTTP 层只调这里）。

把五个操作映射到 accessor：
- list / get：`read_through`（分别回填集合 key / 单条 key）
- create：只失效集合 key
- update / delete：失效集合 key + 单条 key
"""

from __future__ import annotations

import logging

from app.products.cache_aside import CacheAsideAccessor
from app.products.cache_aside import DEFAULT_TTL_SECONDS
from app.products.cache_aside import PRODUCTS_ALL_KEY
from app.products.cache_aside import invalidation_keys
from app.products.cache_aside import product_key
from app.products.codec import PRODUCT_LIST_SHAPE
from app.products.codec import PRODUCT_SHAPE
from app.products.models import Product
from app.products.models import ProductCreate
from app.products.models import ProductUpdate
from app.products.models import Source
from app.products.store import ProductStore

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(
        self,
        store: ProductStore,
        accessor: CacheAsideAccessor,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        log: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._accessor = accessor
        self._ttl_seconds = ttl_seconds
        self._logger = log or logger

    async def list_products(self) -> tuple[list[Product], Source]:
        products, source = await self._accessor.read_through(
            PRODUCTS_ALL_KEY, self._ttl_seconds, self._store.list_all, PRODUCT_LIST_SHAPE
        )
        return products or [], source

    async def get_product(self, product_id: int) -> tuple[Product | None, Source]:
        """不存在时返回 `(None, "database")`，且不会写入缓存。"""

        async def fetch() -> Product | None:
            return await self._store.find_by_id(product_id)

        return await self._accessor.read_through(product_key(product_id), self._ttl_seconds, fetch, PRODUCT_SHAPE)

    async def create_product(self, payload: ProductCreate) -> Product:
        async def insert() -> Product:
            return await self._store.insert(name=payload.name, price=payload.price, stock=payload.stock)

        product = await self._accessor.mutate_and_invalidate(insert, invalidation_keys())
        self._logger.info(f"Created product id={product.id}")
        return product

    async def update_product(self, product_id: int, payload: ProductUpdate) -> Product:
        """目标不存在时抛 `ProductNotFoundError`，缓存不动。"""

        async def update() -> Product:
            return await self._store.update(product_id, name=payload.name, price=payload.price, stock=payload.stock)

        product = await self._accessor.mutate_and_invalidate(update, invalidation_keys(product_id))
        self._logger.info(f"Updated product id={product_id}")
        return product

    async def delete_product(self, product_id: int) -> None:
        async def delete() -> None:
            await self._store.delete(product_id)

        await self._accessor.mutate_and_invalidate(delete, invalidation_keys(product_id))
        self._logger.info(f"Deleted product id={product_id}")
