from __future__ import annotations

from boutique.discount_keys.constants import HALF_LENGTH, IDENTIFIER_LENGTH, KEY_TYPES
from boutique.discount_keys.errors import DiscountKeyInputError
from boutique.discount_keys.types import CartLineRef


def _is_ascii_digits(value: str, length: int) -> bool:
    return len(value) == length and value.isascii() and value.isdigit()


def parse_half(raw_value: str) -> str:
    if not isinstance(raw_value, str) or not _is_ascii_digits(raw_value, HALF_LENGTH):
        raise DiscountKeyInputError(f"expected exactly {HALF_LENGTH} digits")
    return raw_value


def parse_key_type(raw_value: str) -> str:
    # Exact lowercase names only, matching the request model.
    if raw_value not in KEY_TYPES:
        raise DiscountKeyInputError(f"unknown discount key type: {raw_value!r}")
    return raw_value


def validate_cart_line(cart_line: CartLineRef) -> CartLineRef:
    if cart_line.product_id <= 0:
        raise DiscountKeyInputError("cart line product_id must be positive")
    if not cart_line.size.strip() or not cart_line.color.strip():
        raise DiscountKeyInputError("cart line variant requires size and color")
    return cart_line


def is_valid_identifier(identifier: str) -> bool:
    return _is_ascii_digits(identifier, IDENTIFIER_LENGTH)


def own_half_of(identifier: str) -> str:
    return identifier[:HALF_LENGTH]


def partner_half_of(identifier: str) -> str:
    return identifier[-HALF_LENGTH:]


def derive_code(*, own_half: str, partner_half: str) -> str:
    """Redemption code: redeemer's first four digits, then the partner's last four."""
    return f"{own_half}{partner_half}"
