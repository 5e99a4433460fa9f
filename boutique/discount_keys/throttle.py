from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.repo.throttle_repo import RedemptionThrottleRepo
from boutique.db.session import SessionLocal
from boutique.discount_keys.errors import DiscountKeyThrottleError

logger = structlog.get_logger(__name__)


async def get_failed_attempts(session: AsyncSession, *, account_id: int) -> int:
    return await RedemptionThrottleRepo.get_failed_attempts(session, account_id)


async def is_locked(session: AsyncSession, *, account_id: int, ceiling: int) -> bool:
    return await get_failed_attempts(session, account_id=account_id) >= ceiling


async def reserve_attempt(*, account_id: int, ceiling: int, now_utc: datetime) -> int | None:
    """Counts the attempt as failed before any half is evaluated.

    Returns the new attempt count, or ``None`` once the ceiling is reached.
    A reservation is kept when the guess turns out wrong and handed back with
    ``release_attempt`` for rejections that are not guesses.
    """
    # Own transaction: the attempt must survive the rollback of the rejected redemption.
    try:
        async with SessionLocal.begin() as throttle_session:
            attempt_count = await RedemptionThrottleRepo.reserve_attempt(
                throttle_session,
                account_id=account_id,
                ceiling=ceiling,
                now_utc=now_utc,
            )
    except SQLAlchemyError as exc:
        logger.exception("discount_key_throttle_reserve_failed", account_id=account_id)
        raise DiscountKeyThrottleError("attempt reservation failed") from exc

    if attempt_count is None:
        return None
    if attempt_count >= ceiling:
        logger.warning(
            "discount_key_throttle_locked",
            account_id=account_id,
            failed_attempts=attempt_count,
        )
    return attempt_count


async def release_attempt(*, account_id: int, now_utc: datetime) -> bool:
    try:
        async with SessionLocal.begin() as throttle_session:
            released = await RedemptionThrottleRepo.release_attempt(
                throttle_session,
                account_id=account_id,
                now_utc=now_utc,
            )
    except SQLAlchemyError as exc:
        logger.exception("discount_key_throttle_release_failed", account_id=account_id)
        raise DiscountKeyThrottleError("attempt release failed") from exc
    return released > 0


async def reset(session: AsyncSession, *, account_id: int, now_utc: datetime) -> bool:
    try:
        updated = await RedemptionThrottleRepo.reset(session, account_id=account_id, now_utc=now_utc)
    except SQLAlchemyError as exc:
        logger.exception("discount_key_throttle_reset_failed", account_id=account_id)
        raise DiscountKeyThrottleError("attempt counter reset failed") from exc
    return updated > 0


def attempts_remaining(*, attempt_count: int, ceiling: int) -> int:
    return max(0, ceiling - attempt_count)
