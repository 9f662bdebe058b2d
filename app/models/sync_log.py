# app/models/sync_log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.core.enums import SyncLogStatus


class SyncLog(Base):
    """
    One row per brand sync attempt.

    Opened with status 'running' and closed exactly once with 'success' or 'failed'.
    """
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)

    # --- Timestamps ---
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    status = Column(String, default=SyncLogStatus.RUNNING.value, nullable=False, index=True)

    # --- Outcome ---
    products_added = Column(Integer, default=0, nullable=False)
    products_updated = Column(Integer, default=0, nullable=False)
    error = Column(Text, nullable=True)  # newline-joined per-product errors, or the fatal error

    brand = relationship("Brand", back_populates="sync_logs")

    def __repr__(self):
        return (f"<SyncLog(id={self.id}, brand_id={self.brand_id}, status='{self.status}', "
                f"added={self.products_added}, updated={self.products_updated})>")
