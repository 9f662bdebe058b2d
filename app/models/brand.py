# app/models/brand.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Brand(Base):
    """
    A retail brand whose catalog is pulled from its own API.

    A brand is only syncable once api_key, api_endpoint and api_type are all set.
    """
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    logo = Column(String, nullable=True)
    website = Column(String, nullable=True)

    # --- Upstream API configuration ---
    api_key = Column(String, nullable=True)
    api_endpoint = Column(String, nullable=True)
    api_type = Column(String, nullable=True)  # shopify, woocommerce, generic

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("Product", back_populates="brand")
    sync_logs = relationship("SyncLog", back_populates="brand")

    def __repr__(self):
        return f"<Brand(id={self.id}, name='{self.name}', api_type='{self.api_type}')>"
