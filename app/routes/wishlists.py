"""
Wishlist endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.core.exceptions import ProductNotFoundError, WishlistNotFoundError
from app.dependencies import get_wishlist_service
from app.schemas import WishlistItemRead, WishlistWithProducts
from app.services.wishlist_service import WishlistService

router = APIRouter(prefix="/api/wishlists", tags=["wishlists"])


class WishlistItemAdd(BaseModel):
    user_id: str
    product_id: int
    wishlist_id: Optional[int] = None


@router.get("", response_model=List[WishlistWithProducts])
async def list_wishlists(
    user_id: str = Query(..., min_length=1),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
):
    try:
        return await wishlist_service.get_wishlists_with_items(user_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/items", response_model=WishlistItemRead, status_code=201)
async def add_wishlist_item(
    item: WishlistItemAdd,
    wishlist_service: WishlistService = Depends(get_wishlist_service)
):
    try:
        return await wishlist_service.add_to_wishlist(item.user_id, item.product_id, item.wishlist_id)
    except (ProductNotFoundError, WishlistNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/items/{product_id}", status_code=204)
async def remove_wishlist_item(
    product_id: int,
    user_id: str = Query(..., min_length=1),
    wishlist_id: Optional[int] = None,
    wishlist_service: WishlistService = Depends(get_wishlist_service)
):
    try:
        await wishlist_service.remove_from_wishlist(user_id, product_id, wishlist_id)
    except WishlistNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/check/{product_id}")
async def check_wishlist(
    product_id: int,
    user_id: str = Query(..., min_length=1),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
):
    return {"in_wishlist": await wishlist_service.is_in_wishlist(user_id, product_id)}
