from boutique.db.models.accounts import Account
from boutique.db.models.cart_line_discounts import CartLineDiscount
from boutique.db.models.discount_key_usages import DiscountKeyUsage
from boutique.db.models.discount_keys import DiscountKey
from boutique.db.models.redemption_throttles import RedemptionThrottle

__all__ = [
    "Account",
    "CartLineDiscount",
    "DiscountKey",
    "DiscountKeyUsage",
    "RedemptionThrottle",
]
