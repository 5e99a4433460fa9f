from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CHAR,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from boutique.db.models.base import Base


class CartLineDiscount(Base):
    __tablename__ = "cart_line_discounts"
    __table_args__ = (
        UniqueConstraint(
            "account_id",
            "product_id",
            "size",
            "color",
            name="uq_cart_line_discounts_line",
        ),
        CheckConstraint(
            "percentage BETWEEN 1 AND 100",
            name="ck_cart_line_discounts_percentage",
        ),
        Index("idx_cart_line_discounts_account", "account_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    account_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    size: Mapped[str] = mapped_column(String(32), nullable=False)
    color: Mapped[str] = mapped_column(String(64), nullable=False)
    percentage: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    discount_key_type: Mapped[str] = mapped_column(String(16), nullable=False)
    usage_code: Mapped[str] = mapped_column(CHAR(8), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
