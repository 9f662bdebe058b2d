"""
Schemas for canonical catalog products.

ProductDraft is what every upstream adapter emits; ProductRead is what the
storage layer hands back once a draft has been persisted.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Union

from pydantic import Field, field_validator, model_validator

from app.schemas.base import BaseSchema


class PriceHistoryEntry(BaseSchema):
    date: str  # YYYY-MM-DD in the configured reference timezone
    price: float

    @field_validator('date', mode='before')
    @classmethod
    def normalise_date(cls, v):
        # Older rows stored full ISO timestamps; keep only the calendar date
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        if isinstance(v, str) and len(v) >= 10:
            return v[:10]
        raise ValueError(f'Invalid price history date: {v!r}')


class ProductDraft(BaseSchema):
    """Canonical product shape, independent of the upstream format"""
    external_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    discounted_price: Optional[float] = Field(default=None, ge=0)
    brand_id: int
    category_id: int
    images: List[str] = []
    rating: Optional[float] = None
    review_count: Optional[int] = None
    in_stock: bool = True
    is_new: bool = False
    is_featured: bool = False
    sizes: List[Union[int, str]] = []
    colors: List[Union[int, str]] = []
    tags: List[str] = []
    url: str
    price_history: List[PriceHistoryEntry] = []

    @field_validator('price', 'discounted_price', mode='before')
    @classmethod
    def validate_price(cls, v):
        if v is None:
            return None
        try:
            return float(Decimal(str(v).strip()))
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError(f'Price must be a valid number, got: {v}')

    @field_validator('images', 'sizes', 'colors', 'tags', 'price_history', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v

    @model_validator(mode='after')
    def check_discount(self):
        if self.discounted_price is not None and self.discounted_price > self.price:
            raise ValueError('discounted_price must not exceed price')
        return self

    @property
    def effective_price(self) -> float:
        """What the shopper pays right now"""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.price


class ProductRead(ProductDraft):
    id: int
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class ProductFilters(BaseSchema):
    brand_ids: List[int] = []
    category_ids: List[int] = []
    sizes: List[Union[int, str]] = []
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    search: Optional[str] = None
    in_stock: Optional[bool] = None
    page: Optional[int] = None
    limit: Optional[int] = None


class ProductPage(BaseSchema):
    items: List[ProductRead]
    total: int
