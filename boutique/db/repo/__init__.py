from boutique.db.repo.accounts_repo import AccountsRepo
from boutique.db.repo.cart_discounts_repo import CartDiscountsRepo
from boutique.db.repo.discount_keys_repo import DiscountKeysRepo
from boutique.db.repo.key_usages_repo import KeyUsagesRepo
from boutique.db.repo.throttle_repo import RedemptionThrottleRepo

__all__ = [
    "AccountsRepo",
    "CartDiscountsRepo",
    "DiscountKeysRepo",
    "KeyUsagesRepo",
    "RedemptionThrottleRepo",
]
