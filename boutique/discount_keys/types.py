from __future__ import annotations

from dataclasses import dataclass, field

from boutique.discount_keys.constants import (
    ALLOWED_STATE_TRANSITIONS,
    STATE_FAILED,
    STATE_IDLE,
    STATE_SUCCEEDED,
)
from boutique.discount_keys.errors import InvalidStateTransitionError


@dataclass(frozen=True, slots=True)
class CartLineRef:
    product_id: int
    size: str
    color: str


@dataclass(slots=True)
class RedemptionStateMachine:
    state: str = STATE_IDLE
    trail: list[str] = field(default_factory=lambda: [STATE_IDLE])
    failure_reason: str | None = None

    def advance(self, next_state: str) -> None:
        if (self.state, next_state) not in ALLOWED_STATE_TRANSITIONS:
            raise InvalidStateTransitionError(f"{self.state} -> {next_state}")
        self.state = next_state
        self.trail.append(next_state)

    def fail(self, reason: str) -> None:
        self.advance(STATE_FAILED)
        self.failure_reason = reason


@dataclass(slots=True)
class RedemptionResult:
    status: str
    reason: str | None = None
    percentage: int | None = None
    discount_key_type: str | None = None
    code: str | None = None
    usage_id: int | None = None
    attempts_remaining: int | None = None
    state_trail: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status == STATE_SUCCEEDED


@dataclass(frozen=True, slots=True)
class ProvisionedIdentity:
    account_id: int
    identifier: str
    created: bool
