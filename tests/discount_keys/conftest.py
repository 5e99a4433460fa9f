from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from boutique.db.repo.accounts_repo import AccountsRepo
from boutique.db.repo.cart_discounts_repo import CartDiscountsRepo
from boutique.db.repo.discount_keys_repo import DiscountKeysRepo
from boutique.db.repo.key_usages_repo import KeyUsagesRepo
from boutique.db.repo.throttle_repo import RedemptionThrottleRepo
from boutique.discount_keys import identifiers, service, throttle


class _FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSession:
    def begin_nested(self) -> _FakeTransaction:
        return _FakeTransaction()


class _FakeSessionFactory:
    def begin(self) -> _FakeTransaction:
        return _FakeTransaction()


class FakeDiscountKeyStore:
    def __init__(self) -> None:
        self.accounts: dict[int, SimpleNamespace] = {}
        self.failed_attempts: dict[int, int] = {}
        self.discount_keys: dict[str, SimpleNamespace] = {
            "silver": SimpleNamespace(id=1, key_type="silver", percentage=5, is_active=True),
            "bronze": SimpleNamespace(id=2, key_type="bronze", percentage=10, is_active=True),
            "gold": SimpleNamespace(id=3, key_type="gold", percentage=20, is_active=True),
        }
        self.usages: dict[str, SimpleNamespace] = {}
        self.cart_discounts: dict[tuple[int, int, str, str], SimpleNamespace] = {}
        # Yield to the event loop on each repository call, like a database round trip.
        self.yield_on_io = False

    def add_account(
        self,
        account_id: int,
        identifier: str,
        *,
        purchases_count: int = 1,
        sharing_enabled: bool = True,
        status: str = "ACTIVE",
    ) -> SimpleNamespace:
        account = SimpleNamespace(
            id=account_id,
            identifier=identifier,
            purchases_count=purchases_count,
            sharing_enabled=sharing_enabled,
            status=status,
        )
        self.accounts[account_id] = account
        return account

    async def get_by_id(self, session, account_id: int):
        del session
        if self.yield_on_io:
            await asyncio.sleep(0)
        return self.accounts.get(account_id)

    async def identifier_exists(self, session, identifier: str) -> bool:
        del session
        return any(account.identifier == identifier for account in self.accounts.values())

    async def get_identifier_neighbours(self, session, identifier: str):
        del session
        existing = sorted(account.identifier for account in self.accounts.values())
        lower = max((value for value in existing if value < identifier), default=None)
        higher = min((value for value in existing if value > identifier), default=None)
        return lower, higher

    async def create(self, session, *, account_id: int, identifier: str, now_utc):
        del session, now_utc
        return self.add_account(account_id, identifier, purchases_count=0, sharing_enabled=False)

    async def list_active_by_identifier_tail(
        self,
        session,
        *,
        tail: str,
        exclude_account_id: int,
        limit: int = 2,
    ):
        del session
        if self.yield_on_io:
            await asyncio.sleep(0)
        matches = [
            account
            for account in sorted(self.accounts.values(), key=lambda item: item.id)
            if account.identifier[-4:] == tail
            and account.id != exclude_account_id
            and account.status == "ACTIVE"
        ]
        return matches[:limit]

    async def set_sharing_enabled(self, session, *, account_id: int, enabled: bool, now_utc) -> int:
        del session, now_utc
        account = self.accounts.get(account_id)
        if account is None:
            return 0
        account.sharing_enabled = enabled
        return 1

    async def increment_purchases_count(self, session, *, account_id: int, now_utc):
        del session, now_utc
        account = self.accounts.get(account_id)
        if account is None:
            return None
        account.purchases_count += 1
        return account.purchases_count

    async def get_failed_attempts(self, session, account_id: int) -> int:
        del session
        if self.yield_on_io:
            await asyncio.sleep(0)
        return self.failed_attempts.get(account_id, 0)

    async def reserve_attempt(self, session, *, account_id: int, ceiling: int, now_utc):
        del session, now_utc
        if self.yield_on_io:
            await asyncio.sleep(0)
        value = self.failed_attempts.get(account_id, 0)
        if value >= ceiling:
            return None
        self.failed_attempts[account_id] = value + 1
        return value + 1

    async def release_attempt(self, session, *, account_id: int, now_utc) -> int:
        del session, now_utc
        if self.failed_attempts.get(account_id, 0) == 0:
            return 0
        self.failed_attempts[account_id] -= 1
        return 1

    async def reset_failed_attempts(self, session, *, account_id: int, now_utc) -> int:
        del session, now_utc
        if self.failed_attempts.get(account_id, 0) == 0:
            return 0
        self.failed_attempts[account_id] = 0
        return 1

    async def get_active_by_type(self, session, key_type: str):
        del session
        key = self.discount_keys.get(key_type)
        if key is None or not key.is_active:
            return None
        return key

    async def insert_if_code_unused(
        self,
        session,
        *,
        code: str,
        redeemer_account_id: int,
        partner_account_id: int,
        discount_key_id: int,
        discount_key_type: str,
        percentage: int,
        created_at,
    ):
        del session
        if code in self.usages:
            return None
        usage = SimpleNamespace(
            id=len(self.usages) + 1,
            code=code,
            redeemer_account_id=redeemer_account_id,
            partner_account_id=partner_account_id,
            discount_key_id=discount_key_id,
            discount_key_type=discount_key_type,
            percentage=percentage,
            created_at=created_at,
        )
        self.usages[code] = usage
        return usage.id

    async def list_usages_for_account(self, session, *, account_id: int, limit: int = 50):
        del session
        rows = [
            usage
            for usage in self.usages.values()
            if account_id in (usage.redeemer_account_id, usage.partner_account_id)
        ]
        rows.sort(key=lambda usage: (usage.created_at, usage.id), reverse=True)
        return rows[:limit]

    async def upsert_line_discount(
        self,
        session,
        *,
        account_id: int,
        product_id: int,
        size: str,
        color: str,
        percentage: int,
        discount_key_type: str,
        usage_code: str,
        now_utc,
    ):
        del session
        line_key = (account_id, product_id, size, color)
        existing = self.cart_discounts.get(line_key)
        if existing is not None:
            existing.percentage = percentage
            existing.discount_key_type = discount_key_type
            existing.usage_code = usage_code
            existing.updated_at = now_utc
            return existing.id

        row = SimpleNamespace(
            id=len(self.cart_discounts) + 1,
            account_id=account_id,
            product_id=product_id,
            size=size,
            color=color,
            percentage=percentage,
            discount_key_type=discount_key_type,
            usage_code=usage_code,
            created_at=now_utc,
            updated_at=now_utc,
        )
        self.cart_discounts[line_key] = row
        return row.id


@pytest.fixture
def store(monkeypatch) -> FakeDiscountKeyStore:
    fake = FakeDiscountKeyStore()

    monkeypatch.setattr(AccountsRepo, "get_by_id", fake.get_by_id)
    monkeypatch.setattr(AccountsRepo, "identifier_exists", fake.identifier_exists)
    monkeypatch.setattr(AccountsRepo, "get_identifier_neighbours", fake.get_identifier_neighbours)
    monkeypatch.setattr(AccountsRepo, "create", fake.create)
    monkeypatch.setattr(
        AccountsRepo,
        "list_active_by_identifier_tail",
        fake.list_active_by_identifier_tail,
    )
    monkeypatch.setattr(AccountsRepo, "set_sharing_enabled", fake.set_sharing_enabled)
    monkeypatch.setattr(AccountsRepo, "increment_purchases_count", fake.increment_purchases_count)
    monkeypatch.setattr(RedemptionThrottleRepo, "get_failed_attempts", fake.get_failed_attempts)
    monkeypatch.setattr(RedemptionThrottleRepo, "reserve_attempt", fake.reserve_attempt)
    monkeypatch.setattr(RedemptionThrottleRepo, "release_attempt", fake.release_attempt)
    monkeypatch.setattr(RedemptionThrottleRepo, "reset", fake.reset_failed_attempts)
    monkeypatch.setattr(DiscountKeysRepo, "get_active_by_type", fake.get_active_by_type)
    monkeypatch.setattr(KeyUsagesRepo, "insert_if_code_unused", fake.insert_if_code_unused)
    monkeypatch.setattr(KeyUsagesRepo, "list_for_account", fake.list_usages_for_account)
    monkeypatch.setattr(CartDiscountsRepo, "upsert_line_discount", fake.upsert_line_discount)

    monkeypatch.setattr(throttle, "SessionLocal", _FakeSessionFactory())
    settings = SimpleNamespace(
        key_redeem_max_failures=5,
        identifier_max_generation_attempts=100,
        identifier_adjacency_check=False,
    )
    monkeypatch.setattr(service, "get_settings", lambda: settings)
    monkeypatch.setattr(identifiers, "get_settings", lambda: settings)
    return fake


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
