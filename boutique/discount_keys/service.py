from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.core.config import get_settings
from boutique.db.models.accounts import Account
from boutique.db.models.discount_key_usages import DiscountKeyUsage
from boutique.db.repo.accounts_repo import AccountsRepo
from boutique.db.repo.discount_keys_repo import DiscountKeysRepo
from boutique.db.repo.key_usages_repo import KeyUsagesRepo
from boutique.discount_keys import throttle
from boutique.discount_keys.applicator import apply_line_discount
from boutique.discount_keys.codes import (
    derive_code,
    own_half_of,
    parse_half,
    parse_key_type,
    validate_cart_line,
)
from boutique.discount_keys.constants import (
    ACCOUNT_STATUS_ACTIVE,
    REASON_INVALID_CODE,
    STATE_APPLYING,
    STATE_AUTHORIZING,
    STATE_CHECKING_LEDGER,
    STATE_FAILED,
    STATE_MATCHING_PARTNER,
    STATE_MATCHING_SELF,
    STATE_SUCCEEDED,
)
from boutique.discount_keys.errors import (
    AccountAccessForbiddenError,
    AccountNotFoundError,
    AttemptsExceededError,
    DiscountApplicationError,
    DiscountKeyLedgerError,
    DiscountKeyNotFoundError,
    DiscountKeyRejectedError,
    InvalidCodeError,
    NoPriorPurchaseError,
    NotAuthenticatedError,
    PartnerNotSharingError,
)
from boutique.discount_keys.ledger import record_usage
from boutique.discount_keys.types import CartLineRef, RedemptionResult, RedemptionStateMachine

logger = structlog.get_logger(__name__)


class DiscountKeyService:
    @staticmethod
    def _guess_failure(
        *,
        account_id: int,
        attempt_count: int,
        ceiling: int,
        detail: str,
    ) -> InvalidCodeError:
        logger.info(
            "discount_key_guess_failed",
            account_id=account_id,
            detail=detail,
            failed_attempts=attempt_count,
        )
        return InvalidCodeError(
            attempts_remaining=throttle.attempts_remaining(
                attempt_count=attempt_count,
                ceiling=ceiling,
            )
        )

    @staticmethod
    async def _authorize(
        session: AsyncSession,
        *,
        requester_account_id: int | None,
        ceiling: int,
        now_utc: datetime,
    ) -> tuple[Account, int]:
        if requester_account_id is None:
            raise NotAuthenticatedError

        requester = await AccountsRepo.get_by_id(session, requester_account_id)
        if requester is None or requester.status != ACCOUNT_STATUS_ACTIVE:
            raise NotAuthenticatedError
        if requester.purchases_count < 1:
            raise NoPriorPurchaseError

        attempt_count = await throttle.reserve_attempt(
            account_id=requester.id,
            ceiling=ceiling,
            now_utc=now_utc,
        )
        if attempt_count is None:
            raise AttemptsExceededError(attempts_remaining=0)
        return requester, attempt_count

    @staticmethod
    async def _match_partner(
        session: AsyncSession,
        *,
        requester: Account,
        partner_half: str,
        attempt_count: int,
        ceiling: int,
    ) -> Account:
        candidates = await AccountsRepo.list_active_by_identifier_tail(
            session,
            tail=partner_half,
            exclude_account_id=requester.id,
            limit=2,
        )
        if len(candidates) != 1:
            raise DiscountKeyService._guess_failure(
                account_id=requester.id,
                attempt_count=attempt_count,
                ceiling=ceiling,
                detail="partner_ambiguous" if candidates else "partner_not_found",
            )

        partner = candidates[0]
        if not partner.sharing_enabled:
            raise PartnerNotSharingError
        return partner

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        requester_account_id: int | None,
        own_half: str,
        partner_half: str,
        key_type: str,
        cart_line: CartLineRef,
        now_utc: datetime | None = None,
    ) -> RedemptionResult:
        """Runs one redemption attempt through the ordered checks.

        Malformed input raises ``DiscountKeyInputError`` before any state is
        touched. Business and security rejections come back as a ``FAILED``
        result. Once the requester is authorized an attempt is reserved on the
        throttle; it is kept when either half does not match and handed back
        for every other outcome, a success resetting the counter instead.
        The ledger row, the throttle reset and the cart discount share the
        caller's transaction, so an applicator failure rolls all of them back.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        own_half = parse_half(own_half)
        partner_half = parse_half(partner_half)
        key_type = parse_key_type(key_type)
        cart_line = validate_cart_line(cart_line)
        ceiling = get_settings().key_redeem_max_failures

        machine = RedemptionStateMachine()
        requester = None
        try:
            machine.advance(STATE_AUTHORIZING)
            requester, attempt_count = await DiscountKeyService._authorize(
                session,
                requester_account_id=requester_account_id,
                ceiling=ceiling,
                now_utc=now_utc,
            )

            machine.advance(STATE_MATCHING_SELF)
            if own_half != own_half_of(requester.identifier):
                raise DiscountKeyService._guess_failure(
                    account_id=requester.id,
                    attempt_count=attempt_count,
                    ceiling=ceiling,
                    detail="own_half_mismatch",
                )

            machine.advance(STATE_MATCHING_PARTNER)
            partner = await DiscountKeyService._match_partner(
                session,
                requester=requester,
                partner_half=partner_half,
                attempt_count=attempt_count,
                ceiling=ceiling,
            )

            machine.advance(STATE_CHECKING_LEDGER)
            discount_key = await DiscountKeysRepo.get_active_by_type(session, key_type)
            if discount_key is None:
                raise DiscountKeyNotFoundError

            code = derive_code(own_half=own_half, partner_half=partner_half)
            usage_id = await record_usage(
                session,
                code=code,
                redeemer_account_id=requester.id,
                partner_account_id=partner.id,
                discount_key=discount_key,
                now_utc=now_utc,
            )
        except DiscountKeyRejectedError as exc:
            # requester is only bound once an attempt has been reserved.
            if requester is not None and exc.reason != REASON_INVALID_CODE:
                await throttle.release_attempt(account_id=requester.id, now_utc=now_utc)
            machine.fail(exc.reason)
            logger.info(
                "discount_key_redeem_rejected",
                account_id=requester_account_id,
                reason=exc.reason,
                rejected_in=machine.trail[-2],
            )
            return RedemptionResult(
                status=STATE_FAILED,
                reason=exc.reason,
                attempts_remaining=exc.attempts_remaining,
                state_trail=tuple(machine.trail),
            )
        except DiscountKeyLedgerError:
            await throttle.release_attempt(account_id=requester.id, now_utc=now_utc)
            raise

        machine.advance(STATE_APPLYING)
        try:
            await apply_line_discount(
                session,
                account_id=requester.id,
                cart_line=cart_line,
                percentage=discount_key.percentage,
                discount_key_type=discount_key.key_type,
                usage_code=code,
                now_utc=now_utc,
            )
        except DiscountApplicationError:
            await throttle.release_attempt(account_id=requester.id, now_utc=now_utc)
            raise

        # After the discount write: the reset locks the throttle row until commit.
        await throttle.reset(session, account_id=requester.id, now_utc=now_utc)

        machine.advance(STATE_SUCCEEDED)
        logger.info(
            "discount_key_redeemed",
            account_id=requester.id,
            partner_account_id=partner.id,
            usage_id=usage_id,
            discount_key_type=discount_key.key_type,
            percentage=discount_key.percentage,
        )
        return RedemptionResult(
            status=STATE_SUCCEEDED,
            percentage=discount_key.percentage,
            discount_key_type=discount_key.key_type,
            code=code,
            usage_id=usage_id,
            state_trail=tuple(machine.trail),
        )

    @staticmethod
    async def set_sharing_enabled(
        session: AsyncSession,
        *,
        account_id: int,
        actor_account_id: int,
        enabled: bool,
        now_utc: datetime | None = None,
    ) -> bool:
        if actor_account_id != account_id:
            raise AccountAccessForbiddenError

        now_utc = now_utc or datetime.now(timezone.utc)
        updated = await AccountsRepo.set_sharing_enabled(
            session,
            account_id=account_id,
            enabled=enabled,
            now_utc=now_utc,
        )
        if updated == 0:
            raise AccountNotFoundError

        logger.info("discount_key_sharing_updated", account_id=account_id, enabled=enabled)
        return enabled

    @staticmethod
    async def record_completed_purchase(
        session: AsyncSession,
        *,
        account_id: int,
        now_utc: datetime | None = None,
    ) -> int:
        now_utc = now_utc or datetime.now(timezone.utc)
        purchases_count = await AccountsRepo.increment_purchases_count(
            session,
            account_id=account_id,
            now_utc=now_utc,
        )
        if purchases_count is None:
            raise AccountNotFoundError
        return purchases_count

    @staticmethod
    async def reset_throttle(
        session: AsyncSession,
        *,
        account_id: int,
        now_utc: datetime | None = None,
    ) -> bool:
        if await AccountsRepo.get_by_id(session, account_id) is None:
            raise AccountNotFoundError

        now_utc = now_utc or datetime.now(timezone.utc)
        was_reset = await throttle.reset(session, account_id=account_id, now_utc=now_utc)
        logger.info("discount_key_throttle_reset", account_id=account_id, was_reset=was_reset)
        return was_reset

    @staticmethod
    async def list_usages(
        session: AsyncSession,
        *,
        account_id: int,
        actor_account_id: int,
        limit: int = 50,
    ) -> list[DiscountKeyUsage]:
        if actor_account_id != account_id:
            raise AccountAccessForbiddenError
        return await KeyUsagesRepo.list_for_account(session, account_id=account_id, limit=limit)
