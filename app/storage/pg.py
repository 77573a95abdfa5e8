from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from decimal import Decimal
from typing import Any

from psycopg_pool import AsyncConnectionPool

from app.products.models import Product
from app.products.store import ProductNotFoundError

logger = logging.getLogger(__name__)

_COLUMNS = "id, name, price, stock, created_at"


class PostgresProductStore:
    """Postgres `ProductStore` 实现。连接池进程内共享，由 lifespan 负责 open/close。"""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    def connection(self) -> AbstractAsyncContextManager[Any]:
        return self._pool.connection()

    async def list_all(self) -> list[Product]:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(f"SELECT {_COLUMNS} FROM products ORDER BY id")
                rows = await cur.fetchall()
        return [_row_to_product(row) for row in rows]

    async def find_by_id(self, product_id: int) -> Product | None:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(f"SELECT {_COLUMNS} FROM products WHERE id = %s", (product_id,))
                row = await cur.fetchone()
        return _row_to_product(row) if row is not None else None

    async def insert(self, name: str, price: Decimal, stock: int) -> Product:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO products (name, price, stock)
                    VALUES (%s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (name, price, stock),
                )
                row = await cur.fetchone()
            await conn.commit()
        if row is None:
            raise RuntimeError("INSERT ... RETURNING returned no row")
        product = _row_to_product(row)
        logger.info(f"Inserted product id={product.id}")
        return product

    async def update(self, product_id: int, name: str, price: Decimal, stock: int) -> Product:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    UPDATE products SET name = %s, price = %s, stock = %s
                    WHERE id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (name, price, stock, product_id),
                )
                row = await cur.fetchone()
            await conn.commit()
        if row is None:
            raise ProductNotFoundError(product_id)
        return _row_to_product(row)

    async def delete(self, product_id: int) -> None:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM products WHERE id = %s", (product_id,))
                deleted = cur.rowcount
            await conn.commit()
        if deleted == 0:
            raise ProductNotFoundError(product_id)


def create_pool(dsn: str, max_size: int) -> AsyncConnectionPool:
    """创建共享连接池（不立即连接，`await pool.open()` 之后才可用）。"""
    return AsyncConnectionPool(conninfo=dsn, min_size=1, max_size=max_size, open=False)


async def ensure_schema(store: PostgresProductStore) -> None:
    async with store.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                CREATE TABLE IF NOT EXISTS products (
                    id SERIAL PRIMARY KEY,
                    name TEXT NOT NULL,
                    price NUMERIC(18, 2) NOT NULL CHECK (price > 0),
                    stock INTEGER NOT NULL CHECK (stock >= 0),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )
        await conn.commit()


def _row_to_product(row: tuple[Any, ...]) -> Product:
    return Product(id=row[0], name=row[1], price=row[2], stock=row[3], created_at=row[4])
