# app/models/price_alert.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base
from app.core.enums import NotificationType


class PriceAlert(Base):
    __tablename__ = "price_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    target_price = Column(Float, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    notification_type = Column(String, default=NotificationType.EMAIL.value, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Only ever written by the evaluator when the alert fires
    last_notified_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (f"<PriceAlert(id={self.id}, user_id='{self.user_id}', product_id={self.product_id}, "
                f"target={self.target_price}, active={self.is_active})>")
