from storefront.models.admin_token import AdminToken
from storefront.models.coupon import Coupon, DiscountType
from storefront.models.gift_card import GiftCard, GiftCardStatus, GiftCardTransaction
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product
from storefront.models.store import Store

__all__ = [
    "AdminToken",
    "Coupon",
    "DiscountType",
    "GiftCard",
    "GiftCardStatus",
    "GiftCardTransaction",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "Store",
]
