import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from arq import cron

from storefront.core.config import settings
from storefront.core.database import SessionLocal
from storefront.core.tenancy import StoreScope
from storefront.models.shared import utc_now
from storefront.repositories.gift_card_repository import GiftCardRepository
from storefront.repositories.store_repository import StoreRepository
from storefront.services.gift_card_delivery import deliver_gift_card_email
from storefront.tasks import redis_settings

logger = logging.getLogger(__name__)


async def retry_gift_card_emails_task(ctx: dict[str, Any]) -> int:
    """Background task: re-send delivery emails that never went out.

    Only active cards that were issued with email delivery and created more
    than GIFT_CARD_EMAIL_RETRY_AFTER_MINUTES ago are picked up.
    Runs every 15 minutes.
    """
    db = SessionLocal()
    try:
        cutoff = utc_now() - timedelta(minutes=settings.GIFT_CARD_EMAIL_RETRY_AFTER_MINUTES)
        pending: list[tuple[UUID, UUID]] = []
        for store in StoreRepository(db).get_all():
            repo = GiftCardRepository(StoreScope(db, store.id))  # type: ignore[arg-type]
            pending.extend((store.id, card.id) for card in repo.get_undelivered(cutoff))  # type: ignore[misc]
    finally:
        db.close()

    sent = 0
    for store_id, gift_card_id in pending:
        if await deliver_gift_card_email(store_id, gift_card_id):
            sent += 1

    if pending:
        logger.info("Re-sent %d of %d undelivered gift card emails", sent, len(pending))
    return sent


class WorkerSettings:
    functions = [
        retry_gift_card_emails_task,
    ]
    cron_jobs = [
        cron(retry_gift_card_emails_task, minute={0, 15, 30, 45}),
    ]
    redis_settings = redis_settings
