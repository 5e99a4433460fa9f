from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Request

from boutique.db.session import SessionLocal
from boutique.discount_keys.constants import (
    REASON_ATTEMPTS_EXCEEDED,
    REASON_CODE_ALREADY_USED,
    REASON_DISCOUNT_KEY_NOT_FOUND,
    REASON_INVALID_CODE,
    REASON_NO_PRIOR_PURCHASE,
    REASON_NOT_AUTHENTICATED,
    REASON_PARTNER_NOT_SHARING,
)
from boutique.discount_keys.errors import (
    DiscountApplicationError,
    DiscountKeyInputError,
    DiscountKeyLedgerError,
    DiscountKeyThrottleError,
)
from boutique.discount_keys.service import DiscountKeyService
from boutique.discount_keys.types import CartLineRef

from .internal_access import assert_internal_access
from .internal_discount_keys_models import DiscountKeyRedeemRequest, DiscountKeyRedeemResponse

router = APIRouter(tags=["internal", "discount-keys"])
logger = structlog.get_logger(__name__)

REDEEM_FAILURE_HTTP: dict[str, tuple[int, str]] = {
    REASON_NOT_AUTHENTICATED: (401, "E_NOT_AUTHENTICATED"),
    REASON_NO_PRIOR_PURCHASE: (422, "E_NO_PRIOR_PURCHASE"),
    REASON_ATTEMPTS_EXCEEDED: (429, "E_ATTEMPTS_EXCEEDED"),
    REASON_INVALID_CODE: (404, "E_INVALID_CODE"),
    REASON_PARTNER_NOT_SHARING: (422, "E_PARTNER_NOT_SHARING"),
    REASON_DISCOUNT_KEY_NOT_FOUND: (404, "E_DISCOUNT_KEY_NOT_FOUND"),
    REASON_CODE_ALREADY_USED: (409, "E_CODE_ALREADY_USED"),
}


@router.post("/internal/discount-keys/redeem", response_model=DiscountKeyRedeemResponse)
async def redeem_discount_key(
    payload: DiscountKeyRedeemRequest,
    request: Request,
) -> DiscountKeyRedeemResponse:
    assert_internal_access(request)

    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await DiscountKeyService.redeem(
                session,
                requester_account_id=payload.account_id,
                own_half=payload.own_half,
                partner_half=payload.partner_half,
                key_type=payload.key_type,
                cart_line=CartLineRef(
                    product_id=payload.cart_line.product_id,
                    size=payload.cart_line.size,
                    color=payload.cart_line.color,
                ),
                now_utc=now_utc,
            )
    except DiscountKeyInputError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_MALFORMED_REQUEST"}) from exc
    except (DiscountKeyLedgerError, DiscountKeyThrottleError, DiscountApplicationError) as exc:
        logger.error(
            "discount_key_redeem_internal_error",
            account_id=payload.account_id,
            error_type=type(exc).__name__,
        )
        raise HTTPException(status_code=500, detail={"code": "E_INTERNAL"}) from exc

    if not result.succeeded:
        status_code, error_code = REDEEM_FAILURE_HTTP[result.reason or ""]
        detail: dict[str, object] = {"code": error_code}
        if result.attempts_remaining is not None:
            detail["attempts_remaining"] = result.attempts_remaining
        raise HTTPException(status_code=status_code, detail=detail)

    return DiscountKeyRedeemResponse(
        status=result.status,
        code=result.code or "",
        percentage=result.percentage or 0,
        discount_key_type=result.discount_key_type or "",
        usage_id=result.usage_id or 0,
    )
