from storefront.schemas.checkout import CheckoutCompleted, CheckoutLineItem
from storefront.schemas.coupon import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
)
from storefront.schemas.gift_card import (
    GiftCardDetailResponse,
    GiftCardIssueRequest,
    GiftCardResponse,
    GiftCardStatusUpdate,
    GiftCardTransactionResponse,
    GiftCardValidateRequest,
    GiftCardValidateResponse,
)

__all__ = [
    "CheckoutCompleted",
    "CheckoutLineItem",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",
    "CouponValidateRequest",
    "CouponValidateResponse",
    "GiftCardDetailResponse",
    "GiftCardIssueRequest",
    "GiftCardResponse",
    "GiftCardStatusUpdate",
    "GiftCardTransactionResponse",
    "GiftCardValidateRequest",
    "GiftCardValidateResponse",
]
