"""Gift card ledger: validation, issuance, status changes and redemption."""

import logging
import re
import secrets
from dataclasses import dataclass
from uuid import UUID

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError

from storefront.core.config import settings
from storefront.core.tenancy import StoreScope
from storefront.models.gift_card import GiftCard, GiftCardStatus, GiftCardTransaction
from storefront.models.shared import utc_now
from storefront.repositories.gift_card_repository import (
    GiftCardRepository,
    GiftCardTransactionRepository,
)

logger = logging.getLogger(__name__)

# Excludes 0, O, 1 and I
GIFT_CARD_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GIFT_CARD_CODE_PREFIX = "GC"
GIFT_CARD_CODE_GROUPS = 3
GIFT_CARD_CODE_GROUP_LENGTH = 4

EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)

INVALID_GIFT_CARD_CODE = "Invalid gift card code"
GIFT_CARD_DISABLED = "This gift card has been disabled"
GIFT_CARD_EMPTY = "This gift card has no remaining balance"
CANNOT_ENABLE_EXHAUSTED = "Cannot enable an exhausted gift card"


def generate_gift_card_code() -> str:
    """Random ``GC-XXXX-XXXX-XXXX`` code drawn from a CSPRNG."""
    groups = [
        "".join(secrets.choice(GIFT_CARD_CODE_ALPHABET) for _ in range(GIFT_CARD_CODE_GROUP_LENGTH))
        for _ in range(GIFT_CARD_CODE_GROUPS)
    ]
    return "-".join([GIFT_CARD_CODE_PREFIX, *groups])


def normalize_gift_card_code(code: str) -> str:
    """Canonical form of a code as typed by a shopper.

    ``" gc abcd-efgh jkmn "`` becomes ``"GC-ABCD-EFGH-JKMN"``. Input that does
    not have the shape of a gift card code is returned upper-cased and
    stripped of separators, so it simply fails the lookup.
    """
    compact = re.sub(r"[\s-]+", "", code).upper()
    body_length = GIFT_CARD_CODE_GROUPS * GIFT_CARD_CODE_GROUP_LENGTH
    if not compact.startswith(GIFT_CARD_CODE_PREFIX):
        return compact
    body = compact[len(GIFT_CARD_CODE_PREFIX) :]
    if len(body) != body_length:
        return compact
    groups = [
        body[i : i + GIFT_CARD_CODE_GROUP_LENGTH]
        for i in range(0, body_length, GIFT_CARD_CODE_GROUP_LENGTH)
    ]
    return "-".join([GIFT_CARD_CODE_PREFIX, *groups])


def _check_email(value: str, message: str) -> str:
    try:
        return EMAIL_ADAPTER.validate_python(value.strip())
    except ValidationError:
        raise ValueError(message) from None


@dataclass
class GiftCardValidation:
    valid: bool
    reason: str | None = None
    gift_card: GiftCard | None = None


@dataclass
class RedemptionResult:
    success: bool
    new_balance: int | None = None
    error: str | None = None


class GiftCardService:
    """Gift card rules for one store."""

    MAX_ISSUE_ATTEMPTS = 5
    MAX_REDEEM_ATTEMPTS = 3

    def __init__(self, scope: StoreScope, denominations: list[int] | None = None):
        self.scope = scope
        self.db = scope.db
        self.denominations = denominations or settings.GIFT_CARD_DENOMINATIONS
        self.gift_card_repo = GiftCardRepository(scope)
        self.transaction_repo = GiftCardTransactionRepository(scope)

    def validate(self, code: str) -> GiftCardValidation:
        """Check that ``code`` names a usable card in this store. Read-only."""
        if not code or not code.strip():
            raise ValueError("Gift card code is required")

        gift_card = self.gift_card_repo.get_by_code(normalize_gift_card_code(code))
        if gift_card is None:
            return GiftCardValidation(valid=False, reason=INVALID_GIFT_CARD_CODE)
        if gift_card.status != GiftCardStatus.ACTIVE.value:
            return GiftCardValidation(valid=False, reason=GIFT_CARD_DISABLED, gift_card=gift_card)
        if gift_card.current_balance <= 0:
            return GiftCardValidation(valid=False, reason=GIFT_CARD_EMPTY, gift_card=gift_card)
        return GiftCardValidation(valid=True, gift_card=gift_card)

    @staticmethod
    def compute_applicable_amount(gift_card: GiftCard, cart_total: int) -> int:
        """Portion of ``cart_total`` the card can cover."""
        return max(0, min(int(gift_card.current_balance), cart_total))

    def issue(
        self,
        amount: int,
        recipient_email: str,
        recipient_name: str | None = None,
        sender_email: str | None = None,
        sender_name: str | None = None,
        message: str | None = None,
        order_id: UUID | None = None,
        payment_session_id: str | None = None,
        send_email: bool = True,
    ) -> GiftCard:
        """Create an active card at full balance with a fresh random code.

        Cards issued with ``send_email=False`` are never picked up by the
        delivery retry sweep.

        Raises:
            ValueError: If the amount is not an offered denomination or an
                email address is malformed.
        """
        if amount not in self.denominations:
            raise ValueError("Invalid gift card amount")
        recipient_email = _check_email(recipient_email or "", "Invalid recipient email")
        if sender_email:
            sender_email = _check_email(sender_email, "Invalid sender email")

        attempt = 0
        while True:
            attempt += 1
            code = generate_gift_card_code()
            try:
                gift_card = self.gift_card_repo.create(
                    code=code,
                    amount=amount,
                    recipient_email=recipient_email,
                    recipient_name=(recipient_name or "").strip() or None,
                    purchased_by_email=sender_email,
                    purchased_by_name=sender_name,
                    gift_message=(message or "").strip() or None,
                    order_id=order_id,
                    payment_session_id=payment_session_id,
                    send_email=send_email,
                )
            except IntegrityError:
                self.db.rollback()
                if attempt >= self.MAX_ISSUE_ATTEMPTS:
                    raise
                logger.warning("Gift card code collision on attempt %d, regenerating", attempt)
                continue

            logger.info(
                "Issued gift card %s for %d in store %s",
                gift_card.id,
                amount,
                self.scope.store_id,
            )
            return gift_card

    def set_status(self, gift_card_id: UUID, status: GiftCardStatus) -> GiftCard | None:
        gift_card = self.gift_card_repo.get_by_id(gift_card_id)
        if gift_card is None:
            return None
        if status == GiftCardStatus.ACTIVE and gift_card.current_balance <= 0:
            raise ValueError(CANNOT_ENABLE_EXHAUSTED)
        return self.gift_card_repo.set_status(gift_card, status)

    def redeem(
        self, gift_card_id: UUID, amount: int, order_id: UUID | None = None
    ) -> RedemptionResult:
        """Deduct ``amount`` from the card and record a ledger row.

        The balance is written with a compare-and-swap on its previous value.
        A lost race re-reads the card and tries again a bounded number of times.
        """
        if amount <= 0:
            raise ValueError("Redemption amount must be positive")

        for _ in range(self.MAX_REDEEM_ATTEMPTS):
            gift_card = self.gift_card_repo.get_by_id(gift_card_id)
            if gift_card is None:
                return RedemptionResult(success=False, error="Gift card not found")
            if gift_card.status != GiftCardStatus.ACTIVE.value:
                return RedemptionResult(success=False, error="Gift card is not active")

            balance = int(gift_card.current_balance)
            if balance < amount:
                return RedemptionResult(success=False, error="Insufficient gift card balance")

            new_balance = balance - amount
            if self.gift_card_repo.compare_and_set_balance(
                gift_card_id, balance, new_balance, utc_now()
            ):
                self.transaction_repo.create(
                    gift_card_id=gift_card_id,
                    amount=amount,
                    balance_before=balance,
                    balance_after=new_balance,
                    order_id=order_id,
                )
                logger.info(
                    "Redeemed %d from gift card %s, balance %d -> %d",
                    amount,
                    gift_card_id,
                    balance,
                    new_balance,
                )
                return RedemptionResult(success=True, new_balance=new_balance)

            logger.info("Gift card %s balance changed concurrently, retrying", gift_card_id)

        return RedemptionResult(
            success=False, error="Gift card balance changed, please try again"
        )

    def get_with_transactions(
        self, gift_card_id: UUID
    ) -> tuple[GiftCard, list[GiftCardTransaction]] | None:
        gift_card = self.gift_card_repo.get_by_id(gift_card_id)
        if gift_card is None:
            return None
        return gift_card, self.transaction_repo.get_by_gift_card_id(gift_card_id)
