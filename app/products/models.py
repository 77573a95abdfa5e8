"""
Product 领域模型（Pydantic）。

用途：
- `Product`：存储与缓存里的完整实体（`createdAt` 为 wire 字段名）
- `ProductCreate` / `ProductUpdate`：写接口的入参校验（进入 accessor 之前）
- `ProductView`：创建成功后返回的投影（不含 createdAt）
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

Source = Literal["cache", "database"]


def _require_non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("name must not be blank")
    return value


ProductName = Annotated[str, Field(min_length=1), AfterValidator(_require_non_blank)]

# 15 位有效数字以内，float 往返不丢精度（JSON 里输出为 number）；列类型 NUMERIC(18, 2)
Price = Annotated[
    Decimal,
    Field(ge=Decimal("0.01"), max_digits=15, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# 对应 INTEGER 列上限
Stock = Annotated[int, Field(ge=0, le=2_147_483_647)]


class Product(BaseModel):
    """唯一的领域实体；`id` 由存储层分配，之后不可变。"""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: ProductName
    price: Price
    stock: Stock
    created_at: datetime = Field(alias="createdAt")


class ProductCreate(BaseModel):
    """POST 入参：name 必填，0.01 <= price（最多两位小数），0 <= stock <= int32 上限。"""

    name: ProductName
    price: Price
    stock: Stock


class ProductUpdate(BaseModel):
    """PUT 入参：字段约束同创建；`id` 可选，给了就必须和 path 一致。"""

    id: int | None = None
    name: ProductName
    price: Price
    stock: Stock


class ProductView(BaseModel):
    id: int
    name: str
    price: Price
    stock: Stock

    @classmethod
    def from_product(cls, product: Product) -> ProductView:
        return cls(id=product.id, name=product.name, price=product.price, stock=product.stock)


class ProductListResponse(BaseModel):
    source: Source
    data: list[Product]


class ProductResponse(BaseModel):
    source: Source
    data: Product
