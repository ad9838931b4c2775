"""Email service for sending transactional emails via SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from html import escape
from typing import TYPE_CHECKING

import aiosmtplib

from storefront.core.config import settings
from storefront.core.currency import format_cents

if TYPE_CHECKING:
    from storefront.models.gift_card import GiftCard
    from storefront.models.store import Store

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails via SMTP."""

    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        """Send an email via SMTP.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            html_body: HTML content of the email.

        Returns:
            True if the relay accepted the message, False when SMTP is not
            configured and nothing was sent.
        """
        if not settings.smtp_enabled:
            logger.warning("SMTP not configured, skipping email to %s: %s", to, subject)
            return False

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("Please view this email in an HTML-capable client.")
        msg.add_alternative(html_body, subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True

    async def send_gift_card_delivery(self, gift_card: GiftCard, store: Store) -> bool:
        """Send the card code and balance to its recipient."""
        store_name = escape(str(store.name or ""))
        amount = format_cents(int(gift_card.original_amount), str(store.currency))
        sender = gift_card.purchased_by_name or gift_card.purchased_by_email
        greeting = escape(str(gift_card.recipient_name or "there"))

        subject = f"You've received a {amount} gift card from {store.name}"
        if sender:
            subject = f"{sender} sent you a {amount} gift card"

        html_body = (
            f"<h2>{amount} gift card for {store_name}</h2>"
            f"<p>Hi {greeting},</p>"
        )
        if gift_card.gift_message:
            html_body += f"<blockquote>{escape(str(gift_card.gift_message))}</blockquote>"
        html_body += (
            f"<table>"
            f"<tr><td><strong>Code:</strong></td><td>{gift_card.code}</td></tr>"
            f"<tr><td><strong>Amount:</strong></td><td>{amount}</td></tr>"
            f"</table>"
            f"<p>Enter this code at checkout to apply it to your order.</p>"
        )

        return await self.send_email(
            to=str(gift_card.recipient_email),
            subject=subject,
            html_body=html_body,
        )

    async def send_gift_card_purchase_confirmation(
        self, gift_card: GiftCard, store: Store
    ) -> bool:
        """Confirm a purchase to the buyer. The code itself is not repeated."""
        if not gift_card.purchased_by_email:
            logger.warning("Gift card %s has no purchaser email, skipping confirmation", gift_card.id)
            return False

        amount = format_cents(int(gift_card.original_amount), str(store.currency))
        recipient = escape(str(gift_card.recipient_name or gift_card.recipient_email))
        subject = f"Your {amount} gift card purchase from {store.name}"
        html_body = (
            f"<h2>Thank you for your purchase</h2>"
            f"<p>Your {amount} gift card is on its way to {recipient}.</p>"
        )

        return await self.send_email(
            to=str(gift_card.purchased_by_email),
            subject=subject,
            html_body=html_body,
        )
