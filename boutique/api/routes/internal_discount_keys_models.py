from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CartLinePayload(BaseModel):
    product_id: int = Field(gt=0)
    size: str = Field(min_length=1, max_length=32)
    color: str = Field(min_length=1, max_length=64)


class DiscountKeyRedeemRequest(BaseModel):
    account_id: int | None = Field(default=None, gt=0)
    own_half: str = Field(pattern=r"^[0-9]{4}$")
    partner_half: str = Field(pattern=r"^[0-9]{4}$")
    key_type: str = Field(pattern=r"^(silver|bronze|gold)$")
    cart_line: CartLinePayload


class DiscountKeyRedeemResponse(BaseModel):
    status: str
    code: str
    percentage: int = Field(ge=1, le=100)
    discount_key_type: str
    usage_id: int


class IdentityResponse(BaseModel):
    account_id: int
    identifier: str
    created: bool


class SharingUpdateRequest(BaseModel):
    actor_account_id: int = Field(gt=0)
    enabled: bool


class SharingUpdateResponse(BaseModel):
    account_id: int
    sharing_enabled: bool


class PurchaseRecordedResponse(BaseModel):
    account_id: int
    purchases_count: int = Field(ge=0)


class ThrottleResetResponse(BaseModel):
    account_id: int
    was_reset: bool


class DiscountKeyUsageResponse(BaseModel):
    code: str
    role: str
    discount_key_type: str
    percentage: int
    created_at: datetime


class DiscountKeyUsageListResponse(BaseModel):
    usages: list[DiscountKeyUsageResponse]
