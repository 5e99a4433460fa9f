from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.discount_keys import DiscountKey


class DiscountKeysRepo:
    @staticmethod
    async def get_active_by_type(session: AsyncSession, key_type: str) -> DiscountKey | None:
        stmt = (
            select(DiscountKey)
            .where(DiscountKey.key_type == key_type, DiscountKey.is_active.is_(True))
            .order_by(DiscountKey.created_at.desc(), DiscountKey.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
