from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.cart_line_discounts import CartLineDiscount


class CartDiscountsRepo:
    @staticmethod
    async def upsert_line_discount(
        session: AsyncSession,
        *,
        account_id: int,
        product_id: int,
        size: str,
        color: str,
        percentage: int,
        discount_key_type: str,
        usage_code: str,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            pg_insert(CartLineDiscount)
            .values(
                account_id=account_id,
                product_id=product_id,
                size=size,
                color=color,
                percentage=percentage,
                discount_key_type=discount_key_type,
                usage_code=usage_code,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_update(
                constraint="uq_cart_line_discounts_line",
                set_={
                    "percentage": percentage,
                    "discount_key_type": discount_key_type,
                    "usage_code": usage_code,
                    "updated_at": now_utc,
                },
            )
            .returning(CartLineDiscount.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_account(session: AsyncSession, account_id: int) -> list[CartLineDiscount]:
        stmt = (
            select(CartLineDiscount)
            .where(CartLineDiscount.account_id == account_id)
            .order_by(CartLineDiscount.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
