from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.db.repo.cart_discounts_repo import CartDiscountsRepo
from boutique.discount_keys.errors import DiscountApplicationError
from boutique.discount_keys.types import CartLineRef

logger = structlog.get_logger(__name__)


async def apply_line_discount(
    session: AsyncSession,
    *,
    account_id: int,
    cart_line: CartLineRef,
    percentage: int,
    discount_key_type: str,
    usage_code: str,
    now_utc: datetime,
) -> int:
    """Sets the single active discount of one cart line, replacing any earlier one."""
    if not 1 <= percentage <= 100:
        raise DiscountApplicationError(f"percentage out of range: {percentage}")

    try:
        discount_id = await CartDiscountsRepo.upsert_line_discount(
            session,
            account_id=account_id,
            product_id=cart_line.product_id,
            size=cart_line.size,
            color=cart_line.color,
            percentage=percentage,
            discount_key_type=discount_key_type,
            usage_code=usage_code,
            now_utc=now_utc,
        )
    except SQLAlchemyError as exc:
        raise DiscountApplicationError("cart line discount write failed") from exc

    if discount_id is None:
        raise DiscountApplicationError("cart line discount write returned no row")

    logger.info(
        "cart_line_discount_applied",
        account_id=account_id,
        product_id=cart_line.product_id,
        percentage=percentage,
        discount_key_type=discount_key_type,
    )
    return discount_id
