"""
Schema exports for the application.
"""

# Base schemas
from .base import BaseSchema

# Catalog schemas
from .product import (
    PriceHistoryEntry,
    ProductDraft,
    ProductRead,
    ProductFilters,
    ProductPage
)
from .category import CategoryRead
from .brand import BrandBase, BrandCreate, BrandUpdate, BrandRead, BrandApiStatus
from .sync_log import SyncLogRead, SyncResult

# Shopper-facing schemas
from .price_alert import PriceAlertCreate, PriceAlertUpdate, PriceAlertRead, AlertCheckResult
from .wishlist import WishlistCreate, WishlistRead, WishlistItemRead, WishlistWithProducts
