from storefront.repositories.admin_token_repository import AdminTokenRepository
from storefront.repositories.coupon_repository import CouponRepository
from storefront.repositories.gift_card_repository import (
    GiftCardRepository,
    GiftCardTransactionRepository,
)
from storefront.repositories.order_repository import (
    OrderItemRepository,
    OrderRepository,
    ProductRepository,
)
from storefront.repositories.store_repository import StoreRepository

__all__ = [
    "AdminTokenRepository",
    "CouponRepository",
    "GiftCardRepository",
    "GiftCardTransactionRepository",
    "OrderItemRepository",
    "OrderRepository",
    "ProductRepository",
    "StoreRepository",
]
