from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.models.discount_keys import DiscountKey
from boutique.db.repo.key_usages_repo import KeyUsagesRepo
from boutique.discount_keys.errors import CodeAlreadyUsedError, DiscountKeyLedgerError

logger = structlog.get_logger(__name__)


async def record_usage(
    session: AsyncSession,
    *,
    code: str,
    redeemer_account_id: int,
    partner_account_id: int,
    discount_key: DiscountKey,
    now_utc: datetime,
) -> int:
    try:
        usage_id = await KeyUsagesRepo.insert_if_code_unused(
            session,
            code=code,
            redeemer_account_id=redeemer_account_id,
            partner_account_id=partner_account_id,
            discount_key_id=discount_key.id,
            discount_key_type=discount_key.key_type,
            percentage=discount_key.percentage,
            created_at=now_utc,
        )
    except SQLAlchemyError as exc:
        logger.exception(
            "discount_key_ledger_insert_failed",
            redeemer_account_id=redeemer_account_id,
        )
        raise DiscountKeyLedgerError("usage ledger insert failed") from exc

    if usage_id is None:
        raise CodeAlreadyUsedError
    return usage_id
