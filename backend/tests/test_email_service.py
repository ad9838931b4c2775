"""Tests for EmailService and background gift card delivery."""

import logging
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from storefront.core.config import settings
from storefront.repositories.gift_card_repository import GiftCardRepository
from storefront.services.email_service import EmailService
from storefront.services.gift_card_delivery import deliver_gift_card_email
from storefront.services.gift_card_service import GiftCardService

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store(**overrides):  # type: ignore[no-untyped-def]
    defaults = {"name": "Corner Books", "currency": "USD"}
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_gift_card(**overrides):  # type: ignore[no-untyped-def]
    defaults = {
        "id": uuid.uuid4(),
        "code": "GC-ABCD-EFGH-JKLM",
        "original_amount": 5000,
        "recipient_email": "friend@example.com",
        "recipient_name": "Sam",
        "purchased_by_email": "buyer@example.com",
        "purchased_by_name": "Robin",
        "gift_message": None,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


@pytest.fixture
def smtp(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    with patch(
        "storefront.services.email_service.aiosmtplib.send", new_callable=AsyncMock
    ) as mock_send:
        yield mock_send


def _sent_message(mock_send):  # type: ignore[no-untyped-def]
    return mock_send.call_args[0][0]


def _html_part(message) -> str:  # type: ignore[no-untyped-def]
    return message.get_body(preferencelist=("html",)).get_content()


# ---------------------------------------------------------------------------
# Tests for EmailService.send_email
# ---------------------------------------------------------------------------


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_skipped_when_smtp_not_configured(self, caplog):
        with (
            patch(
                "storefront.services.email_service.aiosmtplib.send", new_callable=AsyncMock
            ) as mock_send,
            caplog.at_level(logging.WARNING, logger="storefront.services.email_service"),
        ):
            result = await EmailService().send_email("a@b.co", "Hello", "<p>Hi</p>")

        assert result is False
        mock_send.assert_not_called()
        assert "SMTP not configured" in caplog.text

    @pytest.mark.asyncio
    async def test_sends_via_smtp(self, smtp, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_PORT", 2525)
        monkeypatch.setattr(settings, "SMTP_USERNAME", "mailer")
        monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")

        result = await EmailService().send_email("a@b.co", "Hello", "<p>Hi</p>")

        assert result is True
        smtp.assert_awaited_once()
        kwargs = smtp.call_args[1]
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 2525
        assert kwargs["username"] == "mailer"
        assert kwargs["password"] == "secret"
        message = _sent_message(smtp)
        assert message["To"] == "a@b.co"
        assert message["Subject"] == "Hello"
        assert _html_part(message).strip() == "<p>Hi</p>"

    @pytest.mark.asyncio
    async def test_empty_credentials_passed_as_none(self, smtp):
        await EmailService().send_email("a@b.co", "Hello", "<p>Hi</p>")

        assert smtp.call_args[1]["username"] is None
        assert smtp.call_args[1]["password"] is None

    @pytest.mark.asyncio
    async def test_smtp_errors_propagate(self, smtp):
        smtp.side_effect = OSError("connection refused")

        with pytest.raises(OSError):
            await EmailService().send_email("a@b.co", "Hello", "<p>Hi</p>")


# ---------------------------------------------------------------------------
# Tests for gift card emails
# ---------------------------------------------------------------------------


class TestGiftCardEmails:
    @pytest.mark.asyncio
    async def test_delivery_contains_code_and_amount(self, smtp):
        card = _make_gift_card(gift_message="Happy birthday!")

        assert await EmailService().send_gift_card_delivery(card, _make_store()) is True

        message = _sent_message(smtp)
        assert message["To"] == "friend@example.com"
        assert message["Subject"] == "Robin sent you a $50.00 gift card"
        html = _html_part(message)
        assert "GC-ABCD-EFGH-JKLM" in html
        assert "$50.00" in html
        assert "Happy birthday!" in html

    @pytest.mark.asyncio
    async def test_delivery_subject_without_sender(self, smtp):
        card = _make_gift_card(purchased_by_name=None, purchased_by_email=None)

        await EmailService().send_gift_card_delivery(card, _make_store(currency="EUR"))

        assert _sent_message(smtp)["Subject"] == (
            "You've received a €50.00 gift card from Corner Books"
        )

    @pytest.mark.asyncio
    async def test_message_is_escaped(self, smtp):
        card = _make_gift_card(gift_message="<script>alert(1)</script>")

        await EmailService().send_gift_card_delivery(card, _make_store())

        html = _html_part(_sent_message(smtp))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    @pytest.mark.asyncio
    async def test_purchase_confirmation_omits_code(self, smtp):
        card = _make_gift_card()

        assert await EmailService().send_gift_card_purchase_confirmation(card, _make_store())

        message = _sent_message(smtp)
        assert message["To"] == "buyer@example.com"
        assert "GC-ABCD-EFGH-JKLM" not in _html_part(message)

    @pytest.mark.asyncio
    async def test_purchase_confirmation_needs_purchaser(self, smtp):
        card = _make_gift_card(purchased_by_email=None)

        assert await EmailService().send_gift_card_purchase_confirmation(card, _make_store()) is False
        smtp.assert_not_called()


# ---------------------------------------------------------------------------
# Tests for deliver_gift_card_email
# ---------------------------------------------------------------------------


class TestDeliverGiftCardEmail:
    @pytest.mark.asyncio
    async def test_stamps_email_sent_at(self, smtp, scope, default_store_id, db_session):
        card = GiftCardService(scope).issue(amount=5000, recipient_email="friend@example.com")

        assert await deliver_gift_card_email(default_store_id, card.id) is True

        db_session.refresh(card)
        assert card.email_sent_at is not None
        smtp.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_notifies_purchaser_when_asked(self, smtp, scope, default_store_id):
        card = GiftCardService(scope).issue(
            amount=5000, recipient_email="friend@example.com", sender_email="buyer@example.com"
        )

        await deliver_gift_card_email(default_store_id, card.id, notify_purchaser=True)

        recipients = [call.args[0]["To"] for call in smtp.call_args_list]
        assert recipients == ["friend@example.com", "buyer@example.com"]

    @pytest.mark.asyncio
    async def test_smtp_disabled_leaves_card_undelivered(self, scope, default_store_id, db_session):
        card = GiftCardService(scope).issue(amount=5000, recipient_email="friend@example.com")

        assert await deliver_gift_card_email(default_store_id, card.id) is False

        db_session.refresh(card)
        assert card.email_sent_at is None

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_card_untouched(
        self, smtp, scope, default_store_id, db_session, caplog
    ):
        smtp.side_effect = OSError("relay down")
        card = GiftCardService(scope).issue(amount=5000, recipient_email="friend@example.com")

        with caplog.at_level(logging.ERROR, logger="storefront.services.gift_card_delivery"):
            assert await deliver_gift_card_email(default_store_id, card.id) is False

        assert "Failed to send gift card" in caplog.text
        db_session.refresh(card)
        assert card.email_sent_at is None
        assert card.current_balance == 5000
        assert card.status == "active"

    @pytest.mark.asyncio
    async def test_missing_card(self, smtp, default_store_id):
        assert await deliver_gift_card_email(default_store_id, uuid.uuid4()) is False
        smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_store(self, smtp):
        assert await deliver_gift_card_email(uuid.uuid4(), uuid.uuid4()) is False
        smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_card_from_other_store_not_sent(self, smtp, scope, second_store):
        card = GiftCardService(scope).issue(amount=5000, recipient_email="friend@example.com")

        assert await deliver_gift_card_email(second_store.id, card.id) is False
        assert GiftCardRepository(scope).get_by_id(card.id).email_sent_at is None
