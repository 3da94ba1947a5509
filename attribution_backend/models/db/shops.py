from __future__ import annotations
"""SQLAlchemy model for shops (one per tracked account)."""
from sqlalchemy import Integer, String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from attribution_backend.database import Base

class Shop(Base):
    __tablename__ = "shops"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    account_id: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    shop_name: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    # Net profit is computed without subtracting VAT when set
    ignore_vat: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
