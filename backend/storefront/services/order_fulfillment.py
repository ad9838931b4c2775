"""Turn completed checkouts into orders, entitlements and gift cards."""

import logging
import secrets
from typing import Any
from uuid import UUID

from storefront.core.tenancy import StoreScope
from storefront.models.gift_card import GiftCard
from storefront.models.order import Order, OrderStatus
from storefront.repositories.gift_card_repository import (
    GiftCardRepository,
    GiftCardTransactionRepository,
)
from storefront.repositories.order_repository import OrderRepository, ProductRepository
from storefront.schemas.checkout import CheckoutCompleted, CheckoutLineItem
from storefront.services.coupon_service import CouponService
from storefront.services.gift_card_service import GiftCardService

logger = logging.getLogger(__name__)


def generate_download_token() -> str:
    return secrets.token_urlsafe(32)


def _parse_uuid(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


class OrderFulfillmentService:
    """Records what a paid checkout bought.

    The payment has already been taken when this runs, so a coupon that can
    no longer be counted or a gift card that can no longer be charged is
    logged rather than raised.
    """

    def __init__(self, scope: StoreScope, currency: str = "USD"):
        self.scope = scope
        self.currency = currency
        self.order_repo = OrderRepository(scope)
        self.product_repo = ProductRepository(scope)
        self.gift_card_repo = GiftCardRepository(scope)
        self.transaction_repo = GiftCardTransactionRepository(scope)

    def fulfill_order(
        self, checkout: CheckoutCompleted, line_items: list[CheckoutLineItem]
    ) -> Order | None:
        """Create the order for a paid session. Replays return the existing order."""
        if not checkout.is_paid:
            logger.info("Checkout %s not paid, skipping fulfillment", checkout.session_id)
            return None

        existing = self.order_repo.get_by_payment_session_id(checkout.session_id)
        if existing is not None:
            logger.info("Order for checkout %s already exists", checkout.session_id)
            self._apply_adjustments(existing)
            return existing

        metadata = checkout.metadata
        coupon_code = (metadata.get("coupon_code") or "").strip() or None
        gift_card_id = _parse_uuid(metadata.get("gift_card_id"))
        try:
            gift_card_amount = max(0, int(metadata.get("gift_card_amount") or 0))
        except ValueError:
            gift_card_amount = 0

        order = self.order_repo.create(
            items=[self._build_item(line) for line in line_items],
            payment_session_id=checkout.session_id,
            payment_intent_id=checkout.payment_intent_id,
            customer_email=checkout.customer_email,
            customer_name=checkout.customer_name,
            subtotal=checkout.amount_subtotal,
            discount_amount=checkout.amount_discount,
            tax=checkout.amount_tax,
            shipping_cost=checkout.amount_shipping,
            total=checkout.amount_total,
            currency=checkout.currency or self.currency,
            coupon_code=coupon_code,
            gift_card_id=gift_card_id,
            gift_card_amount=gift_card_amount if gift_card_id else 0,
            status=OrderStatus.PENDING.value,
        )
        logger.info("Created order %s for checkout %s", order.id, checkout.session_id)
        self._apply_adjustments(order)
        return order

    def _apply_adjustments(self, order: Order) -> None:
        """Count the coupon and charge the gift card for ``order``, once each.

        A replayed checkout finishes whichever step an earlier attempt did not
        reach. Coupon usage is tracked by a flag on the order and the gift card
        charge by the ledger row carrying the order id.
        """
        if order.coupon_code and not order.coupon_usage_recorded:
            coupon_code = str(order.coupon_code)
            if CouponService(self.scope, self.currency).record_usage(coupon_code):
                self.order_repo.mark_coupon_usage_recorded(order.id)  # type: ignore[arg-type]
            else:
                logger.error("Coupon %s usage not recorded for order %s", coupon_code, order.id)

        gift_card_id = order.gift_card_id
        gift_card_amount = int(order.gift_card_amount or 0)
        if gift_card_id is None or gift_card_amount <= 0:
            return
        if self.transaction_repo.get_by_order_id(order.id) is not None:  # type: ignore[arg-type]
            return

        result = GiftCardService(self.scope).redeem(gift_card_id, gift_card_amount, order.id)  # type: ignore[arg-type]
        if not result.success:
            logger.error(
                "Gift card %s redemption of %d failed for order %s: %s",
                gift_card_id,
                gift_card_amount,
                order.id,
                result.error,
            )

    def fulfill_gift_card_purchase(self, checkout: CheckoutCompleted) -> GiftCard | None:
        """Issue the card bought in a gift card checkout. Replays return the existing card."""
        if not checkout.is_paid:
            return None

        existing = self.gift_card_repo.get_by_payment_session_id(checkout.session_id)
        if existing is not None:
            logger.info("Gift card for checkout %s already issued", checkout.session_id)
            return existing

        metadata = checkout.metadata
        try:
            amount = int(metadata.get("gift_card_amount") or checkout.amount_total)
        except ValueError:
            amount = checkout.amount_total

        try:
            gift_card = GiftCardService(self.scope).issue(
                amount=amount,
                recipient_email=metadata.get("recipient_email", ""),
                recipient_name=metadata.get("recipient_name"),
                sender_email=checkout.customer_email or metadata.get("sender_email") or None,
                sender_name=metadata.get("sender_name") or checkout.customer_name,
                message=metadata.get("gift_message"),
                payment_session_id=checkout.session_id,
            )
        except ValueError as e:
            logger.error("Could not issue gift card for checkout %s: %s", checkout.session_id, e)
            return None
        return gift_card

    def _build_item(self, line: CheckoutLineItem) -> dict[str, Any]:
        product_id = _parse_uuid(line.product_id)
        product = self.product_repo.get_by_id(product_id) if product_id else None
        is_digital = bool(product.is_digital) if product is not None else line.is_digital
        return {
            "product_id": product.id if product is not None else None,
            "product_name": product.name if product is not None else line.description,
            "quantity": line.quantity,
            "unit_price": line.unit_amount,
            "download_token": generate_download_token()
            if is_digital and product is not None
            else None,
        }
