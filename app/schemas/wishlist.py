from datetime import datetime
from typing import List

from app.schemas.base import BaseSchema
from app.schemas.product import ProductRead


class WishlistCreate(BaseSchema):
    user_id: str
    name: str
    is_default: bool = False


class WishlistRead(WishlistCreate):
    id: int
    created_at: datetime


class WishlistItemRead(BaseSchema):
    id: int
    wishlist_id: int
    product_id: int
    added_at: datetime


class WishlistWithProducts(BaseSchema):
    wishlist: WishlistRead
    items: List[ProductRead] = []
