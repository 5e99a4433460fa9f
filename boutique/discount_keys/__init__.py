from boutique.discount_keys.identifiers import generate_identifier, provision_identity
from boutique.discount_keys.service import DiscountKeyService

__all__ = [
    "DiscountKeyService",
    "generate_identifier",
    "provision_identity",
]
