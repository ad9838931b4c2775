"""Payment processor webhook endpoint."""

import json
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.core.auth import resolve_store
from storefront.core.database import get_db
from storefront.core.tenancy import StoreScope
from storefront.services.gift_card_delivery import deliver_gift_card_email
from storefront.services.order_fulfillment import OrderFulfillmentService
from storefront.services.payment_provider import StripeProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/stripe",
    summary="Receive Stripe webhook",
    responses={
        400: {"description": "Missing or invalid signature, or malformed payload"},
        404: {"description": "Store not found"},
        503: {"description": "Store not configured"},
    },
)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Fulfill completed checkouts. Other event types are acknowledged and ignored."""
    if not stripe_signature:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    payload = await request.body()
    provider = StripeProvider()
    if not provider.verify_webhook_signature(payload, stripe_signature):
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None

    checkout = provider.parse_checkout_completed(event)
    if checkout is None:
        return {"received": True}
    if not checkout.is_paid:
        logger.info("Ignoring unpaid checkout %s", checkout.session_id)
        return {"received": True}

    store = resolve_store(checkout.metadata.get("store_id"), db)
    scope = StoreScope(db, store.id)  # type: ignore[arg-type]
    service = OrderFulfillmentService(scope, currency=str(store.currency))

    if checkout.is_gift_card_purchase:
        gift_card = service.fulfill_gift_card_purchase(checkout)
        if gift_card is not None and gift_card.email_sent_at is None:
            background_tasks.add_task(
                deliver_gift_card_email, scope.store_id, gift_card.id, True
            )
        return {"received": True}

    line_items = provider.list_line_items(checkout.session_id)
    order = service.fulfill_order(checkout, line_items)
    return {"received": True, "order_id": str(order.id) if order else None}
