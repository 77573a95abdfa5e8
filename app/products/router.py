"""
Product HTTP 接入层。

职责：
- 入参校验交给 Pydantic（失败统一 400，见 `app/http/errors.py`）
- 调用 `ProductService`，把结果翻译成 HTTP 响应
- `source` 字段只用于观测（cache / database），不影响语义
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import Response

from app.products.models import ProductCreate
from app.products.models import ProductListResponse
from app.products.models import ProductResponse
from app.products.models import ProductUpdate
from app.products.models import ProductView
from app.products.service import ProductService


def build_products_router(service: ProductService) -> APIRouter:
    """创建 /products 路由。"""
    router = APIRouter(prefix="/products", tags=["products"])

    @router.get("", response_model=ProductListResponse)
    async def list_products() -> ProductListResponse:
        products, source = await service.list_products()
        return ProductListResponse(source=source, data=products)

    @router.get("/{product_id}", response_model=ProductResponse)
    async def get_product(product_id: int) -> ProductResponse:
        product, source = await service.get_product(product_id)
        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")
        return ProductResponse(source=source, data=product)

    @router.post("", status_code=201, response_model=ProductView)
    async def create_product(payload: ProductCreate, response: Response) -> ProductView:
        product = await service.create_product(payload)
        response.headers["Location"] = f"/products/{product.id}"
        return ProductView.from_product(product)

    @router.put("/{product_id}", status_code=204, response_class=Response)
    async def update_product(product_id: int, payload: ProductUpdate) -> Response:
        if payload.id is not None and payload.id != product_id:
            raise HTTPException(status_code=400, detail="Body id does not match path id")
        # ProductNotFoundError -> 404 由全局 handler 处理
        await service.update_product(product_id, payload)
        return Response(status_code=204)

    @router.delete("/{product_id}", status_code=204, response_class=Response)
    async def delete_product(product_id: int) -> Response:
        await service.delete_product(product_id)
        return Response(status_code=204)

    return router
