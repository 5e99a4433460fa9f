from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.discount_key_usages import DiscountKeyUsage


class KeyUsagesRepo:
    @staticmethod
    async def insert_if_code_unused(
        session: AsyncSession,
        *,
        code: str,
        redeemer_account_id: int,
        partner_account_id: int,
        discount_key_id: int,
        discount_key_type: str,
        percentage: int,
        created_at: datetime,
    ) -> int | None:
        stmt = (
            pg_insert(DiscountKeyUsage)
            .values(
                code=code,
                redeemer_account_id=redeemer_account_id,
                partner_account_id=partner_account_id,
                discount_key_id=discount_key_id,
                discount_key_type=discount_key_type,
                percentage=percentage,
                created_at=created_at,
            )
            .on_conflict_do_nothing(index_elements=[DiscountKeyUsage.code])
            .returning(DiscountKeyUsage.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> DiscountKeyUsage | None:
        stmt = select(DiscountKeyUsage).where(DiscountKeyUsage.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_account(
        session: AsyncSession,
        *,
        account_id: int,
        limit: int = 50,
    ) -> list[DiscountKeyUsage]:
        stmt = (
            select(DiscountKeyUsage)
            .where(
                or_(
                    DiscountKeyUsage.redeemer_account_id == account_id,
                    DiscountKeyUsage.partner_account_id == account_id,
                )
            )
            .order_by(DiscountKeyUsage.created_at.desc(), DiscountKeyUsage.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
