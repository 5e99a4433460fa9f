from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.accounts import Account


class AccountsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, account_id: int) -> Account | None:
        return await session.get(Account, account_id)

    @staticmethod
    async def identifier_exists(session: AsyncSession, identifier: str) -> bool:
        stmt = select(Account.id).where(Account.identifier == identifier).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_identifier_neighbours(
        session: AsyncSession,
        identifier: str,
    ) -> tuple[str | None, str | None]:
        lower_stmt = (
            select(Account.identifier)
            .where(Account.identifier < identifier)
            .order_by(Account.identifier.desc())
            .limit(1)
        )
        higher_stmt = (
            select(Account.identifier)
            .where(Account.identifier > identifier)
            .order_by(Account.identifier.asc())
            .limit(1)
        )
        lower = (await session.execute(lower_stmt)).scalar_one_or_none()
        higher = (await session.execute(higher_stmt)).scalar_one_or_none()
        return lower, higher

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        account_id: int,
        identifier: str,
        now_utc: datetime,
    ) -> Account:
        account = Account(
            id=account_id,
            identifier=identifier,
            sharing_enabled=False,
            purchases_count=0,
            status="ACTIVE",
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def list_active_by_identifier_tail(
        session: AsyncSession,
        *,
        tail: str,
        exclude_account_id: int,
        limit: int = 2,
    ) -> list[Account]:
        stmt = (
            select(Account)
            .where(
                func.right(Account.identifier, 4) == tail,
                Account.id != exclude_account_id,
                Account.status == "ACTIVE",
            )
            .order_by(Account.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def set_sharing_enabled(
        session: AsyncSession,
        *,
        account_id: int,
        enabled: bool,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(sharing_enabled=enabled, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def increment_purchases_count(
        session: AsyncSession,
        *,
        account_id: int,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(purchases_count=Account.purchases_count + 1, updated_at=now_utc)
            .returning(Account.purchases_count)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
