"""Post-response gift card notifications.

These run after the issuing request has already returned, in their own
database session. A failed send is logged and leaves ``email_sent_at`` empty
so the periodic retry picks the card up again; it never affects the card.
"""

import logging
from uuid import UUID

from storefront.core import database
from storefront.core.tenancy import StoreScope
from storefront.models.shared import utc_now
from storefront.repositories.gift_card_repository import GiftCardRepository
from storefront.repositories.store_repository import StoreRepository
from storefront.services.email_service import EmailService

logger = logging.getLogger(__name__)


async def deliver_gift_card_email(
    store_id: UUID, gift_card_id: UUID, notify_purchaser: bool = False
) -> bool:
    """Email the card to its recipient and stamp ``email_sent_at`` on success."""
    db = database.SessionLocal()
    try:
        store = StoreRepository(db).get_by_id(store_id)
        if store is None:
            logger.warning("Store %s not found for gift card %s delivery", store_id, gift_card_id)
            return False

        repo = GiftCardRepository(StoreScope(db, store_id))
        gift_card = repo.get_by_id(gift_card_id)
        if gift_card is None:
            logger.warning("Gift card %s not found in store %s", gift_card_id, store_id)
            return False

        email_service = EmailService()
        try:
            sent = await email_service.send_gift_card_delivery(gift_card, store)
        except Exception:
            logger.exception("Failed to send gift card %s to recipient", gift_card_id)
            return False

        if sent:
            repo.mark_email_sent(gift_card_id, utc_now())

        if notify_purchaser:
            try:
                await email_service.send_gift_card_purchase_confirmation(gift_card, store)
            except Exception:
                logger.exception("Failed to send purchase confirmation for gift card %s", gift_card_id)

        return sent
    finally:
        db.close()
