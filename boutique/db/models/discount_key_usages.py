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


class DiscountKeyUsage(Base):
    __tablename__ = "discount_key_usages"
    __table_args__ = (
        UniqueConstraint("code", name="uq_discount_key_usages_code"),
        CheckConstraint("code ~ '^[0-9]{8}$'", name="ck_discount_key_usages_code_digits"),
        CheckConstraint(
            "redeemer_account_id <> partner_account_id",
            name="ck_discount_key_usages_distinct_accounts",
        ),
        Index("idx_discount_key_usages_redeemer", "redeemer_account_id"),
        Index("idx_discount_key_usages_partner", "partner_account_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(CHAR(8), nullable=False)
    redeemer_account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id"), nullable=False
    )
    partner_account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("accounts.id"), nullable=False
    )
    discount_key_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("discount_keys.id"), nullable=False
    )
    discount_key_type: Mapped[str] = mapped_column(String(16), nullable=False)
    percentage: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
