from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from boutique.db.repo.throttle_repo import RedemptionThrottleRepo
from boutique.discount_keys import throttle
from boutique.discount_keys.errors import DiscountKeyThrottleError

NOW_UTC = datetime(2026, 10, 12, 11, 0, tzinfo=timezone.utc)


async def test_reserve_attempt_stops_at_ceiling(store) -> None:
    counts = [
        await throttle.reserve_attempt(account_id=7, ceiling=5, now_utc=NOW_UTC)
        for _ in range(7)
    ]

    assert counts == [1, 2, 3, 4, 5, None, None]
    assert store.failed_attempts[7] == 5


async def test_release_attempt_gives_back_one_reservation(store) -> None:
    await throttle.reserve_attempt(account_id=7, ceiling=5, now_utc=NOW_UTC)
    await throttle.reserve_attempt(account_id=7, ceiling=5, now_utc=NOW_UTC)

    assert await throttle.release_attempt(account_id=7, now_utc=NOW_UTC) is True
    assert store.failed_attempts[7] == 1
    assert await throttle.release_attempt(account_id=8, now_utc=NOW_UTC) is False


async def test_is_locked_only_at_ceiling(store, session) -> None:
    store.failed_attempts[7] = 4
    assert await throttle.is_locked(session, account_id=7, ceiling=5) is False

    await throttle.reserve_attempt(account_id=7, ceiling=5, now_utc=NOW_UTC)

    assert await throttle.is_locked(session, account_id=7, ceiling=5) is True
    assert await throttle.is_locked(session, account_id=8, ceiling=5) is False


async def test_reset_clears_counter(store, session) -> None:
    store.failed_attempts[7] = 5

    assert await throttle.reset(session, account_id=7, now_utc=NOW_UTC) is True
    assert await throttle.reset(session, account_id=7, now_utc=NOW_UTC) is False
    assert await throttle.get_failed_attempts(session, account_id=7) == 0


async def _broken(session, **kwargs):
    del session, kwargs
    raise OperationalError("UPDATE redemption_throttles", {}, Exception("connection lost"))


async def test_reserve_failure_is_wrapped(monkeypatch, store) -> None:
    monkeypatch.setattr(RedemptionThrottleRepo, "reserve_attempt", _broken)

    with pytest.raises(DiscountKeyThrottleError):
        await throttle.reserve_attempt(account_id=7, ceiling=5, now_utc=NOW_UTC)


async def test_release_failure_is_wrapped(monkeypatch, store) -> None:
    monkeypatch.setattr(RedemptionThrottleRepo, "release_attempt", _broken)

    with pytest.raises(DiscountKeyThrottleError):
        await throttle.release_attempt(account_id=7, now_utc=NOW_UTC)


async def test_reset_failure_is_wrapped(monkeypatch, store, session) -> None:
    monkeypatch.setattr(RedemptionThrottleRepo, "reset", _broken)

    with pytest.raises(DiscountKeyThrottleError):
        await throttle.reset(session, account_id=7, now_utc=NOW_UTC)


def test_attempts_remaining_is_never_negative() -> None:
    assert throttle.attempts_remaining(attempt_count=2, ceiling=5) == 3
    assert throttle.attempts_remaining(attempt_count=5, ceiling=5) == 0
    assert throttle.attempts_remaining(attempt_count=9, ceiling=5) == 0
