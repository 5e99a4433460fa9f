from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from boutique.core.config import get_settings
from boutique.db.repo.accounts_repo import AccountsRepo
from boutique.discount_keys.codes import own_half_of, partner_half_of
from boutique.discount_keys.constants import (
    IDENTIFIER_MAX_VALUE,
    IDENTIFIER_MIN_VALUE,
    IDENTITY_INSERT_RETRIES,
)
from boutique.discount_keys.errors import IdentifierGenerationExhaustedError
from boutique.discount_keys.types import ProvisionedIdentity

logger = structlog.get_logger(__name__)


def draw_identifier_candidate() -> str:
    span = IDENTIFIER_MAX_VALUE - IDENTIFIER_MIN_VALUE + 1
    return str(IDENTIFIER_MIN_VALUE + secrets.randbelow(span))


def violates_adjacency(candidate: str, *, lower: str | None, higher: str | None) -> bool:
    if lower is not None and own_half_of(candidate) == own_half_of(lower):
        return True
    if higher is not None and partner_half_of(candidate) == partner_half_of(higher):
        return True
    return False


async def generate_identifier(
    session: AsyncSession,
    *,
    max_attempts: int | None = None,
    enforce_adjacency: bool | None = None,
    draw_candidate: Callable[[], str] = draw_identifier_candidate,
) -> str:
    settings = get_settings()
    if max_attempts is None:
        max_attempts = settings.identifier_max_generation_attempts
    if enforce_adjacency is None:
        enforce_adjacency = settings.identifier_adjacency_check
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")

    for _ in range(max_attempts):
        candidate = draw_candidate()
        if await AccountsRepo.identifier_exists(session, candidate):
            continue
        if enforce_adjacency:
            lower, higher = await AccountsRepo.get_identifier_neighbours(session, candidate)
            if violates_adjacency(candidate, lower=lower, higher=higher):
                continue
        return candidate

    logger.error(
        "account_identifier_generation_exhausted",
        max_attempts=max_attempts,
        enforce_adjacency=enforce_adjacency,
    )
    raise IdentifierGenerationExhaustedError(
        f"no unique identifier found after {max_attempts} attempts"
    )


async def provision_identity(
    session: AsyncSession,
    *,
    account_id: int,
    now_utc: datetime | None = None,
) -> ProvisionedIdentity:
    now_utc = now_utc or datetime.now(timezone.utc)

    existing = await AccountsRepo.get_by_id(session, account_id)
    if existing is not None:
        return ProvisionedIdentity(
            account_id=existing.id,
            identifier=existing.identifier,
            created=False,
        )

    for _ in range(IDENTITY_INSERT_RETRIES):
        identifier = await generate_identifier(session)
        try:
            async with session.begin_nested():
                account = await AccountsRepo.create(
                    session,
                    account_id=account_id,
                    identifier=identifier,
                    now_utc=now_utc,
                )
        except IntegrityError:
            concurrent = await AccountsRepo.get_by_id(session, account_id)
            if concurrent is not None:
                return ProvisionedIdentity(
                    account_id=concurrent.id,
                    identifier=concurrent.identifier,
                    created=False,
                )
            logger.warning("account_identifier_insert_collision", account_id=account_id)
            continue

        logger.info("account_identity_provisioned", account_id=account_id)
        return ProvisionedIdentity(
            account_id=account.id,
            identifier=account.identifier,
            created=True,
        )

    raise IdentifierGenerationExhaustedError(
        f"identifier insert collided {IDENTITY_INSERT_RETRIES} times"
    )
