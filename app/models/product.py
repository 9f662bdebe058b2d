"""
Catalog product model.

Products are owned by a brand and correlated with the upstream catalog through
external_id, which is namespaced by the adapter that produced it
(e.g. "shopify-4821"). The pair (brand_id, external_id) is unique.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("brand_id", "external_id", name="uq_products_brand_external_id"),
    )

    # Primary Key and Timestamps
    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=True)

    # Upstream correlation
    external_id = Column(String, nullable=True, index=True)

    # Core Product Information
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    url = Column(String, nullable=False)

    # Pricing Fields
    price = Column(Float, nullable=False)
    discounted_price = Column(Float, nullable=True)
    price_history = Column(JSON, default=list)  # [{"date": "YYYY-MM-DD", "price": 12.5}, ...]

    # Status and Flags
    in_stock = Column(Boolean, default=True, nullable=False)
    is_new = Column(Boolean, default=False)
    is_featured = Column(Boolean, default=False)

    # Review signals (not computed here)
    rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=True)

    # Media and variant data
    images = Column(JSON, default=list)
    sizes = Column(JSON, default=list)
    colors = Column(JSON, default=list)
    tags = Column(JSON, default=list)

    brand = relationship("Brand", back_populates="products")

    def __repr__(self):
        return f"<Product(id={self.id}, external_id='{self.external_id}', brand_id={self.brand_id})>"
