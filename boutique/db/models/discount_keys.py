from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, BigInteger, CheckConstraint, DateTime, Index, SmallInteger, String, text
from sqlalchemy.orm import Mapped, mapped_column

from boutique.db.models.base import Base


class DiscountKey(Base):
    __tablename__ = "discount_keys"
    __table_args__ = (
        CheckConstraint(
            "key_type IN ('silver','bronze','gold')",
            name="ck_discount_keys_key_type",
        ),
        CheckConstraint(
            "percentage BETWEEN 1 AND 100",
            name="ck_discount_keys_percentage",
        ),
        Index(
            "uq_discount_keys_active_type",
            "key_type",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    key_type: Mapped[str] = mapped_column(String(16), nullable=False)
    percentage: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
