from __future__ import annotations

from boutique.discount_keys.constants import (
    REASON_ATTEMPTS_EXCEEDED,
    REASON_CODE_ALREADY_USED,
    REASON_DISCOUNT_KEY_NOT_FOUND,
    REASON_INVALID_CODE,
    REASON_NO_PRIOR_PURCHASE,
    REASON_NOT_AUTHENTICATED,
    REASON_PARTNER_NOT_SHARING,
)


class DiscountKeyError(Exception):
    pass


class DiscountKeyInputError(DiscountKeyError, ValueError):
    pass


class DiscountKeyRejectedError(DiscountKeyError):
    reason: str = ""

    def __init__(self, *, attempts_remaining: int | None = None) -> None:
        super().__init__(self.reason)
        self.attempts_remaining = attempts_remaining


class NotAuthenticatedError(DiscountKeyRejectedError):
    reason = REASON_NOT_AUTHENTICATED


class NoPriorPurchaseError(DiscountKeyRejectedError):
    reason = REASON_NO_PRIOR_PURCHASE


class AttemptsExceededError(DiscountKeyRejectedError):
    reason = REASON_ATTEMPTS_EXCEEDED


class InvalidCodeError(DiscountKeyRejectedError):
    reason = REASON_INVALID_CODE


class PartnerNotSharingError(DiscountKeyRejectedError):
    reason = REASON_PARTNER_NOT_SHARING


class DiscountKeyNotFoundError(DiscountKeyRejectedError):
    reason = REASON_DISCOUNT_KEY_NOT_FOUND


class CodeAlreadyUsedError(DiscountKeyRejectedError):
    reason = REASON_CODE_ALREADY_USED


class DiscountKeyLedgerError(DiscountKeyError):
    """Usage ledger write failed for a reason other than the code being spent."""


class DiscountKeyThrottleError(DiscountKeyError):
    """Attempt counter could not be read or written."""


class DiscountApplicationError(DiscountKeyError):
    """The cart line discount could not be written; the redemption must roll back."""


class IdentifierGenerationExhaustedError(DiscountKeyError):
    pass


class InvalidStateTransitionError(DiscountKeyError):
    pass


class AccountNotFoundError(DiscountKeyError):
    pass


class AccountAccessForbiddenError(DiscountKeyError):
    pass
