"""Gift card repository for data access."""

from datetime import datetime
from uuid import UUID

from storefront.core.sorting import apply_order_by
from storefront.core.tenancy import StoreScope
from storefront.models.gift_card import GiftCard, GiftCardStatus, GiftCardTransaction


class GiftCardRepository:
    """Repository for GiftCard model."""

    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        status: GiftCardStatus | None = None,
    ) -> list[GiftCard]:
        query = self.scope.query(GiftCard)
        if status:
            query = query.filter(GiftCard.status == status.value)
        query = apply_order_by(query, GiftCard, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self) -> int:
        return self.scope.query(GiftCard).count()

    def get_by_id(self, gift_card_id: UUID) -> GiftCard | None:
        return self.scope.query(GiftCard).filter(GiftCard.id == gift_card_id).first()

    def get_by_code(self, code: str) -> GiftCard | None:
        """Exact, case-sensitive lookup."""
        return self.scope.query(GiftCard).filter(GiftCard.code == code).first()

    def get_by_payment_session_id(self, session_id: str) -> GiftCard | None:
        return (
            self.scope.query(GiftCard)
            .filter(GiftCard.payment_session_id == session_id)
            .first()
        )

    def get_undelivered(self, created_before: datetime) -> list[GiftCard]:
        """Active cards that asked for a delivery email which never went out."""
        return (
            self.scope.query(GiftCard)
            .filter(
                GiftCard.status == GiftCardStatus.ACTIVE.value,
                GiftCard.send_email.is_(True),
                GiftCard.email_sent_at.is_(None),
                GiftCard.created_at <= created_before,
            )
            .order_by(GiftCard.created_at.asc())
            .all()
        )

    def create(
        self,
        code: str,
        amount: int,
        recipient_email: str,
        recipient_name: str | None = None,
        purchased_by_email: str | None = None,
        purchased_by_name: str | None = None,
        gift_message: str | None = None,
        order_id: UUID | None = None,
        payment_session_id: str | None = None,
        send_email: bool = True,
    ) -> GiftCard:
        """Insert a card at full balance. Raises IntegrityError on a duplicate code."""
        gift_card = GiftCard(
            code=code,
            original_amount=amount,
            current_balance=amount,
            status=GiftCardStatus.ACTIVE.value,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            purchased_by_email=purchased_by_email,
            purchased_by_name=purchased_by_name,
            gift_message=gift_message,
            order_id=order_id,
            payment_session_id=payment_session_id,
            send_email=send_email,
        )
        self.scope.add(gift_card)
        self.db.commit()
        self.db.refresh(gift_card)
        return gift_card

    def set_status(self, gift_card: GiftCard, status: GiftCardStatus) -> GiftCard:
        gift_card.status = status.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(gift_card)
        return gift_card

    def compare_and_set_balance(
        self, gift_card_id: UUID, expected_balance: int, new_balance: int, used_at: datetime
    ) -> bool:
        """Write ``new_balance`` only if the stored balance is still ``expected_balance``.

        The card must also still be active. Returns whether a row was updated.
        """
        result = self.db.execute(
            self.scope.update(GiftCard)
            .where(
                GiftCard.id == gift_card_id,
                GiftCard.current_balance == expected_balance,
                GiftCard.status == GiftCardStatus.ACTIVE.value,
            )
            .values(current_balance=new_balance, last_used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]

    def mark_email_sent(self, gift_card_id: UUID, sent_at: datetime) -> bool:
        result = self.db.execute(
            self.scope.update(GiftCard)
            .where(GiftCard.id == gift_card_id)
            .values(email_sent_at=sent_at)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]


class GiftCardTransactionRepository:
    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def create(
        self,
        gift_card_id: UUID,
        amount: int,
        balance_before: int,
        balance_after: int,
        order_id: UUID | None = None,
    ) -> GiftCardTransaction:
        transaction = GiftCardTransaction(
            gift_card_id=gift_card_id,
            order_id=order_id,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
        )
        self.scope.add(transaction)
        self.db.commit()
        self.db.refresh(transaction)
        return transaction

    def get_by_order_id(self, order_id: UUID) -> GiftCardTransaction | None:
        return (
            self.scope.query(GiftCardTransaction)
            .filter(GiftCardTransaction.order_id == order_id)
            .first()
        )

    def get_by_gift_card_id(self, gift_card_id: UUID) -> list[GiftCardTransaction]:
        return (
            self.scope.query(GiftCardTransaction)
            .filter(GiftCardTransaction.gift_card_id == gift_card_id)
            .order_by(GiftCardTransaction.created_at.desc())
            .all()
        )
