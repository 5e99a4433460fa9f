from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, SmallInteger, text
from sqlalchemy.orm import Mapped, mapped_column

from boutique.db.models.base import Base


class RedemptionThrottle(Base):
    __tablename__ = "redemption_throttles"
    __table_args__ = (
        CheckConstraint(
            "failed_attempts >= 0",
            name="ck_redemption_throttles_failed_attempts_non_negative",
        ),
    )

    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("accounts.id"),
        primary_key=True,
    )
    failed_attempts: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, server_default=text("0")
    )
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
