"""Stripe checkout integration for paid orders and gift card purchases."""

from typing import Any

from storefront.core.config import settings
from storefront.schemas.checkout import CheckoutCompleted, CheckoutLineItem

CHECKOUT_COMPLETED = "checkout.session.completed"


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class StripeProvider:
    """Stripe payment provider implementation."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self.webhook_secret = webhook_secret or settings.stripe_webhook_secret
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Lazy-load stripe module."""
        if self._stripe is None:
            import stripe

            stripe.api_key = self.api_key
            self._stripe = stripe
        return self._stripe

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify Stripe webhook signature."""
        if not self.webhook_secret:
            return False
        try:
            self.stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            return True
        except (ValueError, self.stripe.error.SignatureVerificationError):
            return False

    def parse_checkout_completed(self, payload: dict[str, Any]) -> CheckoutCompleted | None:
        """Extract the completed session from an event, or None for other event types."""
        if payload.get("type") != CHECKOUT_COMPLETED:
            return None
        session = payload.get("data", {}).get("object", {})
        details = session.get("customer_details") or {}
        totals = session.get("total_details") or {}
        shipping = session.get("shipping_cost") or {}

        return CheckoutCompleted(
            session_id=session.get("id", ""),
            payment_intent_id=session.get("payment_intent"),
            payment_status=session.get("payment_status") or "unpaid",
            customer_email=details.get("email") or session.get("customer_email") or "",
            customer_name=details.get("name"),
            currency=str(session.get("currency") or "usd").upper(),
            amount_subtotal=_as_int(session.get("amount_subtotal")),
            amount_total=_as_int(session.get("amount_total")),
            amount_tax=_as_int(totals.get("amount_tax")),
            amount_shipping=_as_int(shipping.get("amount_total")),
            amount_discount=_as_int(totals.get("amount_discount")),
            metadata={k: str(v) for k, v in (session.get("metadata") or {}).items()},
        )

    def list_line_items(self, session_id: str) -> list[CheckoutLineItem]:
        """Fetch the purchased line items, with the product metadata set at checkout."""
        line_items = self.stripe.checkout.Session.list_line_items(
            session_id, limit=100, expand=["data.price.product"]
        )
        items: list[CheckoutLineItem] = []
        for line in line_items.auto_paging_iter():
            price = line.get("price") or {}
            product = price.get("product") or {}
            metadata = (product.get("metadata") or {}) if isinstance(product, dict) else {}
            items.append(
                CheckoutLineItem(
                    description=line.get("description") or "",
                    quantity=_as_int(line.get("quantity")) or 1,
                    unit_amount=_as_int(price.get("unit_amount")),
                    product_id=metadata.get("product_id"),
                    is_digital=metadata.get("is_digital") == "true",
                )
            )
        return items
