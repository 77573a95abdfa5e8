from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import pytest

from app.products.store import ProductNotFoundError
from app.storage.pg import PostgresProductStore
from app.storage.pg import _row_to_product
from app.storage.pg import ensure_schema
from conftest import FIXED_NOW
from conftest import make_product


class FakeCursor:
    def __init__(self, rows: list[tuple[Any, ...]], rowcount: int = 0) -> None:
        self.rows = rows
        self.rowcount = rowcount
        self.executed: list[tuple[str, tuple[Any, ...] | None]] = []

    async def __aenter__(self) -> FakeCursor:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def execute(self, query: str, params: tuple[Any, ...] | None = None) -> None:
        self.executed.append((" ".join(query.split()), params))

    async def fetchall(self) -> list[tuple[Any, ...]]:
        return self.rows

    async def fetchone(self) -> tuple[Any, ...] | None:
        return self.rows[0] if self.rows else None


class FakeConnection:
    def __init__(self, cursor: FakeCursor) -> None:
        self._cursor = cursor
        self.commits = 0

    def cursor(self) -> FakeCursor:
        return self._cursor

    async def commit(self) -> None:
        self.commits += 1


class FakePool:
    def __init__(self, rows: list[tuple[Any, ...]] | None = None, rowcount: int = 0) -> None:
        self.cursor = FakeCursor(rows or [], rowcount)
        self.conn = FakeConnection(self.cursor)
        self.checkouts = 0

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[FakeConnection]:
        self.checkouts += 1
        yield self.conn


ROW = (1, "Widget", Decimal("9.99"), 10, FIXED_NOW)


def _store(pool: FakePool) -> PostgresProductStore:
    return PostgresProductStore(pool=pool)  # type: ignore[arg-type]


def test_row_to_product_maps_columns_in_order() -> None:
    assert _row_to_product(ROW) == make_product()


@pytest.mark.anyio
async def test_list_all_reads_ordered_rows() -> None:
    pool = FakePool(rows=[ROW, (2, "Gadget", Decimal("12.00"), 0, FIXED_NOW)])

    products = await _store(pool).list_all()

    assert [p.id for p in products] == [1, 2]
    assert pool.cursor.executed[0][0].endswith("FROM products ORDER BY id")


@pytest.mark.anyio
async def test_find_by_id_returns_none_for_missing_row() -> None:
    pool = FakePool(rows=[])

    assert await _store(pool).find_by_id(7) is None
    assert pool.cursor.executed[0][1] == (7,)


@pytest.mark.anyio
async def test_insert_returns_row_and_commits() -> None:
    pool = FakePool(rows=[ROW])

    product = await _store(pool).insert(name="Widget", price=Decimal("9.99"), stock=10)

    assert product == make_product()
    assert pool.cursor.executed[0][1] == ("Widget", Decimal("9.99"), 10)
    assert pool.conn.commits == 1


@pytest.mark.anyio
async def test_update_without_returned_row_is_not_found() -> None:
    pool = FakePool(rows=[])

    with pytest.raises(ProductNotFoundError) as excinfo:
        await _store(pool).update(999, name="x", price=Decimal("1.00"), stock=0)
    assert excinfo.value.product_id == 999


@pytest.mark.anyio
async def test_update_returns_updated_row() -> None:
    pool = FakePool(rows=[(1, "Widget2", Decimal("12.00"), 5, FIXED_NOW)])

    product = await _store(pool).update(1, name="Widget2", price=Decimal("12.00"), stock=5)

    assert product.name == "Widget2"
    assert product.created_at == FIXED_NOW


@pytest.mark.anyio
async def test_delete_with_zero_rowcount_is_not_found() -> None:
    pool = FakePool(rowcount=0)

    with pytest.raises(ProductNotFoundError):
        await _store(pool).delete(999)


@pytest.mark.anyio
async def test_delete_existing_row() -> None:
    pool = FakePool(rowcount=1)

    await _store(pool).delete(1)

    assert pool.cursor.executed == [("DELETE FROM products WHERE id = %s", (1,))]
    assert pool.conn.commits == 1


@pytest.mark.anyio
async def test_every_operation_borrows_from_the_shared_pool() -> None:
    pool = FakePool(rows=[ROW], rowcount=1)
    store = _store(pool)

    await store.list_all()
    await store.find_by_id(1)
    await store.delete(1)
    await ensure_schema(store)

    assert pool.checkouts == 4
    assert "CREATE TABLE IF NOT EXISTS products" in pool.cursor.executed[-1][0]
