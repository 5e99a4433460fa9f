from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.redemption_throttles import RedemptionThrottle


class RedemptionThrottleRepo:
    @staticmethod
    async def get_failed_attempts(session: AsyncSession, account_id: int) -> int:
        stmt = select(RedemptionThrottle.failed_attempts).where(
            RedemptionThrottle.account_id == account_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def reserve_attempt(
        session: AsyncSession,
        *,
        account_id: int,
        ceiling: int,
        now_utc: datetime,
    ) -> int | None:
        """Counts one attempt unless the ceiling is already reached.

        Concurrent callers queue on the row lock and re-check the ceiling
        after it is released, so at most ``ceiling`` reservations succeed.
        Returns ``None`` when the account is locked.
        """
        await session.execute(
            pg_insert(RedemptionThrottle)
            .values(account_id=account_id, failed_attempts=0, updated_at=now_utc)
            .on_conflict_do_nothing(index_elements=[RedemptionThrottle.account_id])
        )

        next_value = RedemptionThrottle.failed_attempts + 1
        stmt = (
            update(RedemptionThrottle)
            .where(
                RedemptionThrottle.account_id == account_id,
                RedemptionThrottle.failed_attempts < ceiling,
            )
            .values(
                failed_attempts=next_value,
                locked_at=case((next_value >= ceiling, now_utc), else_=None),
                updated_at=now_utc,
            )
            .returning(RedemptionThrottle.failed_attempts)
        )
        result = await session.execute(stmt)
        attempt_count = result.scalar_one_or_none()
        return None if attempt_count is None else int(attempt_count)

    @staticmethod
    async def release_attempt(session: AsyncSession, *, account_id: int, now_utc: datetime) -> int:
        stmt = (
            update(RedemptionThrottle)
            .where(
                RedemptionThrottle.account_id == account_id,
                RedemptionThrottle.failed_attempts > 0,
            )
            .values(
                failed_attempts=RedemptionThrottle.failed_attempts - 1,
                locked_at=None,
                updated_at=now_utc,
            )
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def reset(session: AsyncSession, *, account_id: int, now_utc: datetime) -> int:
        stmt = (
            update(RedemptionThrottle)
            .where(
                RedemptionThrottle.account_id == account_id,
                RedemptionThrottle.failed_attempts > 0,
            )
            .values(failed_attempts=0, locked_at=None, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
