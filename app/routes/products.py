"""
Catalog query endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_storage
from app.schemas import ProductFilters, ProductPage, ProductRead
from app.services.storage import Storage

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductPage)
async def list_products(
    brand_ids: List[int] = Query(default=[]),
    category_ids: List[int] = Query(default=[]),
    sizes: List[str] = Query(default=[]),
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    search: Optional[str] = None,
    in_stock: Optional[bool] = None,
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    storage: Storage = Depends(get_storage)
):
    filters = ProductFilters(
        brand_ids=brand_ids,
        category_ids=category_ids,
        sizes=sizes,
        price_min=price_min,
        price_max=price_max,
        search=search,
        in_stock=in_stock,
        page=page,
        limit=limit
    )
    return await storage.list_products(filters)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: int, storage: Storage = Depends(get_storage)):
    product = await storage.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
