from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from boutique.db.session import SessionLocal
from boutique.discount_keys.errors import (
    AccountAccessForbiddenError,
    AccountNotFoundError,
    DiscountKeyThrottleError,
    IdentifierGenerationExhaustedError,
)
from boutique.discount_keys.identifiers import provision_identity
from boutique.discount_keys.service import DiscountKeyService

from .internal_access import assert_internal_access
from .internal_discount_keys_models import (
    DiscountKeyUsageListResponse,
    DiscountKeyUsageResponse,
    IdentityResponse,
    PurchaseRecordedResponse,
    SharingUpdateRequest,
    SharingUpdateResponse,
    ThrottleResetResponse,
)

router = APIRouter(tags=["internal", "accounts"])
logger = structlog.get_logger(__name__)


@router.post("/internal/accounts/{account_id}/identity", response_model=IdentityResponse)
async def provision_account_identity(account_id: int, request: Request) -> IdentityResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            identity = await provision_identity(
                session,
                account_id=account_id,
                now_utc=datetime.now(timezone.utc),
            )
    except IdentifierGenerationExhaustedError as exc:
        raise HTTPException(
            status_code=503,
            detail={"code": "E_IDENTIFIER_EXHAUSTED"},
        ) from exc

    return IdentityResponse(
        account_id=identity.account_id,
        identifier=identity.identifier,
        created=identity.created,
    )


@router.put("/internal/accounts/{account_id}/sharing", response_model=SharingUpdateResponse)
async def update_account_sharing(
    account_id: int,
    payload: SharingUpdateRequest,
    request: Request,
) -> SharingUpdateResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            enabled = await DiscountKeyService.set_sharing_enabled(
                session,
                account_id=account_id,
                actor_account_id=payload.actor_account_id,
                enabled=payload.enabled,
            )
    except AccountAccessForbiddenError as exc:
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"}) from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc

    return SharingUpdateResponse(account_id=account_id, sharing_enabled=enabled)


@router.post(
    "/internal/accounts/{account_id}/purchases",
    response_model=PurchaseRecordedResponse,
)
async def record_account_purchase(account_id: int, request: Request) -> PurchaseRecordedResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            purchases_count = await DiscountKeyService.record_completed_purchase(
                session,
                account_id=account_id,
            )
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc

    return PurchaseRecordedResponse(account_id=account_id, purchases_count=purchases_count)


@router.post(
    "/internal/accounts/{account_id}/throttle/reset",
    response_model=ThrottleResetResponse,
)
async def reset_account_throttle(account_id: int, request: Request) -> ThrottleResetResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            was_reset = await DiscountKeyService.reset_throttle(session, account_id=account_id)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc
    except DiscountKeyThrottleError as exc:
        logger.error("internal_discount_key_throttle_reset_failed", account_id=account_id)
        raise HTTPException(status_code=500, detail={"code": "E_INTERNAL"}) from exc

    logger.info("internal_discount_key_throttle_reset", account_id=account_id)
    return ThrottleResetResponse(account_id=account_id, was_reset=was_reset)


@router.get(
    "/internal/accounts/{account_id}/discount-key-usages",
    response_model=DiscountKeyUsageListResponse,
)
async def list_account_discount_key_usages(
    account_id: int,
    request: Request,
    actor_account_id: int = Query(gt=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> DiscountKeyUsageListResponse:
    assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            usages = await DiscountKeyService.list_usages(
                session,
                account_id=account_id,
                actor_account_id=actor_account_id,
                limit=limit,
            )
    except AccountAccessForbiddenError as exc:
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"}) from exc

    return DiscountKeyUsageListResponse(
        usages=[
            DiscountKeyUsageResponse(
                code=usage.code,
                role="REDEEMER" if usage.redeemer_account_id == account_id else "PARTNER",
                discount_key_type=usage.discount_key_type,
                percentage=usage.percentage,
                created_at=usage.created_at,
            )
            for usage in usages
        ]
    )
