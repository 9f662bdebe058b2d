import logging
from typing import List, Optional

from app.core.exceptions import ProductNotFoundError, WishlistNotFoundError
from app.schemas import (
    ProductRead,
    WishlistCreate,
    WishlistItemRead,
    WishlistRead,
    WishlistWithProducts,
)
from app.services.storage.base import Storage

logger = logging.getLogger(__name__)

DEFAULT_WISHLIST_NAME = "My Favorites"


class WishlistService:
    """Shopper wishlists; every user gets a default list on first use."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_or_create_default_wishlist(self, user_id: str) -> WishlistRead:
        for wishlist in await self.storage.list_wishlists(user_id):
            if wishlist.is_default:
                return wishlist

        logger.info(f"Creating default wishlist for user {user_id}")
        return await self.storage.create_wishlist(
            WishlistCreate(user_id=user_id, name=DEFAULT_WISHLIST_NAME, is_default=True)
        )

    async def get_wishlist_products(self, wishlist_id: int) -> List[ProductRead]:
        products = []
        for item in await self.storage.list_wishlist_items(wishlist_id):
            product = await self.storage.get_product(item.product_id)
            if product is None:
                raise ProductNotFoundError(f"Product with ID {item.product_id} not found")
            products.append(product)
        return products

    async def get_wishlists_with_items(self, user_id: str) -> List[WishlistWithProducts]:
        return [
            WishlistWithProducts(wishlist=wishlist, items=await self.get_wishlist_products(wishlist.id))
            for wishlist in await self.storage.list_wishlists(user_id)
        ]

    async def add_to_wishlist(
        self, user_id: str, product_id: int, wishlist_id: Optional[int] = None
    ) -> WishlistItemRead:
        if await self.storage.get_product(product_id) is None:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        if wishlist_id is None:
            wishlist_id = (await self.get_or_create_default_wishlist(user_id)).id
        else:
            await self._owned_wishlist(user_id, wishlist_id)

        return await self.storage.add_wishlist_item(wishlist_id, product_id)

    async def remove_from_wishlist(
        self, user_id: str, product_id: int, wishlist_id: Optional[int] = None
    ) -> None:
        """Without a wishlist_id the product is removed from every list the user owns"""
        if wishlist_id is not None:
            await self._owned_wishlist(user_id, wishlist_id)
            await self.storage.remove_wishlist_item(wishlist_id, product_id)
            return

        for wishlist in await self.storage.list_wishlists(user_id):
            await self.storage.remove_wishlist_item(wishlist.id, product_id)

    async def is_in_wishlist(self, user_id: str, product_id: int) -> bool:
        for wishlist in await self.storage.list_wishlists(user_id):
            items = await self.storage.list_wishlist_items(wishlist.id)
            if any(item.product_id == product_id for item in items):
                return True
        return False

    async def _owned_wishlist(self, user_id: str, wishlist_id: int) -> WishlistRead:
        wishlist = await self.storage.get_wishlist(wishlist_id)
        if wishlist is None or wishlist.user_id != user_id:
            raise WishlistNotFoundError(f"Wishlist {wishlist_id} not found")
        return wishlist
