from .brand import Brand
from .category import Category
from .product import Product
from .sync_log import SyncLog
from .price_alert import PriceAlert
from .wishlist import Wishlist, WishlistItem

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Brand',
    'Category',
    'Product',
    'SyncLog',
    'PriceAlert',
    'Wishlist',
    'WishlistItem',
]
