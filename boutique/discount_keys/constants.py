from __future__ import annotations

KEY_TYPES = ("silver", "bronze", "gold")

IDENTIFIER_LENGTH = 8
HALF_LENGTH = 4
IDENTIFIER_MIN_VALUE = 10_000_000
IDENTIFIER_MAX_VALUE = 99_999_999
IDENTITY_INSERT_RETRIES = 3

ACCOUNT_STATUS_ACTIVE = "ACTIVE"

REASON_NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
REASON_NO_PRIOR_PURCHASE = "NO_PRIOR_PURCHASE"
REASON_ATTEMPTS_EXCEEDED = "ATTEMPTS_EXCEEDED"
REASON_INVALID_CODE = "INVALID_CODE"
REASON_PARTNER_NOT_SHARING = "PARTNER_NOT_SHARING"
REASON_DISCOUNT_KEY_NOT_FOUND = "DISCOUNT_KEY_NOT_FOUND"
REASON_CODE_ALREADY_USED = "CODE_ALREADY_USED"

FAILURE_REASONS = (
    REASON_NOT_AUTHENTICATED,
    REASON_NO_PRIOR_PURCHASE,
    REASON_ATTEMPTS_EXCEEDED,
    REASON_INVALID_CODE,
    REASON_PARTNER_NOT_SHARING,
    REASON_DISCOUNT_KEY_NOT_FOUND,
    REASON_CODE_ALREADY_USED,
)

STATE_IDLE = "IDLE"
STATE_AUTHORIZING = "AUTHORIZING"
STATE_MATCHING_SELF = "MATCHING_SELF"
STATE_MATCHING_PARTNER = "MATCHING_PARTNER"
STATE_CHECKING_LEDGER = "CHECKING_LEDGER"
STATE_APPLYING = "APPLYING"
STATE_SUCCEEDED = "SUCCEEDED"
STATE_FAILED = "FAILED"

TERMINAL_STATES = frozenset({STATE_SUCCEEDED, STATE_FAILED})

# Every non-terminal state may fail; only the happy path moves forward.
ALLOWED_STATE_TRANSITIONS = frozenset(
    {
        (STATE_IDLE, STATE_AUTHORIZING),
        (STATE_AUTHORIZING, STATE_MATCHING_SELF),
        (STATE_MATCHING_SELF, STATE_MATCHING_PARTNER),
        (STATE_MATCHING_PARTNER, STATE_CHECKING_LEDGER),
        (STATE_CHECKING_LEDGER, STATE_APPLYING),
        (STATE_APPLYING, STATE_SUCCEEDED),
        (STATE_AUTHORIZING, STATE_FAILED),
        (STATE_MATCHING_SELF, STATE_FAILED),
        (STATE_MATCHING_PARTNER, STATE_FAILED),
        (STATE_CHECKING_LEDGER, STATE_FAILED),
    }
)
