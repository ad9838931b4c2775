"""Tests for store partitioning of coupons, gift cards, ledgers and downloads."""

import pytest

from storefront.core.tenancy import StoreNotConfiguredError, StoreScope
from storefront.models.coupon import Coupon, DiscountType
from storefront.models.gift_card import GiftCard, GiftCardTransaction
from storefront.models.order import OrderItem
from storefront.models.shared import utc_now
from storefront.models.store import Store
from storefront.repositories.coupon_repository import CouponRepository
from storefront.repositories.gift_card_repository import (
    GiftCardRepository,
    GiftCardTransactionRepository,
)
from storefront.schemas.coupon import CouponCreate
from storefront.services.coupon_service import CouponService
from storefront.services.gift_card_service import GiftCardService


@pytest.fixture
def other_scope(db_session, second_store):
    return StoreScope(db_session, second_store.id)


def _coupon(scope, code="SHARED", value=10):
    return CouponService(scope).create_coupon(
        CouponCreate(code=code, discount_type=DiscountType.PERCENTAGE, discount_value=value)
    )


class TestStoreScope:
    def test_requires_store_id(self, db_session):
        with pytest.raises(StoreNotConfiguredError):
            StoreScope(db_session, None)

    def test_direct_store_column(self, scope):
        predicate = scope.predicate(Coupon)
        assert "store_id" in str(predicate)

    def test_parent_scoped_model(self, scope):
        compiled = str(scope.predicate(GiftCardTransaction))
        assert "gift_card_id" in compiled
        assert "gift_cards.store_id" in compiled

        assert "orders.store_id" in str(scope.predicate(OrderItem))

    def test_unscoped_model_rejected(self, scope):
        with pytest.raises(TypeError, match="not store-scoped"):
            scope.predicate(Store)

    def test_add_assigns_store(self, scope, other_scope):
        coupon = Coupon(code="ASSIGNED", discount_type="fixed", discount_value=100)
        other_scope.add(coupon)
        other_scope.db.commit()

        assert coupon.store_id == other_scope.store_id
        assert CouponRepository(scope).get_by_code("ASSIGNED") is None


class TestCouponIsolation:
    def test_same_code_in_two_stores(self, scope, other_scope):
        _coupon(scope, value=10)
        _coupon(other_scope, value=25)

        ours = CouponService(scope).evaluate("SHARED", 1000)
        theirs = CouponService(other_scope).evaluate("SHARED", 1000)

        assert ours.discount_amount == 100
        assert theirs.discount_amount == 250

    def test_code_from_other_store_is_invalid(self, scope, other_scope):
        _coupon(other_scope, code="ELSEWHERE")

        result = CouponService(scope).evaluate("ELSEWHERE", 1000)

        assert result.valid is False
        assert result.reason == "Invalid coupon code"

    def test_usage_recorded_only_in_owning_store(self, scope, other_scope, db_session):
        ours = _coupon(scope)
        theirs = _coupon(other_scope)

        assert CouponService(other_scope).record_usage("SHARED") is True

        db_session.refresh(ours)
        db_session.refresh(theirs)
        assert ours.current_uses == 0
        assert theirs.current_uses == 1

    def test_listing_and_delete_are_scoped(self, scope, other_scope):
        theirs = _coupon(other_scope, code="THEIRS")
        _coupon(scope, code="OURS")

        assert [c.code for c in CouponRepository(scope).get_all()] == ["OURS"]
        assert CouponRepository(scope).count() == 1
        assert CouponRepository(scope).delete(theirs.id) is False
        assert CouponRepository(other_scope).get_by_id(theirs.id) is not None

    def test_duplicate_check_is_per_store(self, scope, other_scope):
        _coupon(scope, code="WELCOME")
        assert _coupon(other_scope, code="welcome").code == "WELCOME"

    def test_admin_api_only_sees_own_store(self, admin_client, other_scope):
        theirs = _coupon(other_scope, code="HIDDEN")

        assert admin_client.get("/v1/admin/coupons/").json() == []
        assert admin_client.get(f"/v1/admin/coupons/{theirs.id}").status_code == 404


class TestGiftCardIsolation:
    def test_code_from_other_store_is_invalid(self, scope, other_scope):
        card = GiftCardService(other_scope).issue(amount=5000, recipient_email="a@b.co")

        result = GiftCardService(scope).validate(card.code)

        assert result.valid is False
        assert GiftCardRepository(scope).get_by_id(card.id) is None

    def test_redeem_from_other_store_fails_without_charging(self, scope, other_scope, db_session):
        card = GiftCardService(other_scope).issue(amount=5000, recipient_email="a@b.co")

        result = GiftCardService(scope).redeem(card.id, 1000)

        assert result.success is False
        assert result.error == "Gift card not found"
        db_session.refresh(card)
        assert card.current_balance == 5000

    def test_compare_and_set_cannot_touch_other_store(self, scope, other_scope, db_session):
        card = GiftCardService(other_scope).issue(amount=5000, recipient_email="a@b.co")

        assert GiftCardRepository(scope).compare_and_set_balance(card.id, 5000, 0, utc_now()) is False
        db_session.refresh(card)
        assert card.current_balance == 5000

    def test_transactions_follow_their_card(self, scope, other_scope):
        card = GiftCardService(other_scope).issue(amount=5000, recipient_email="a@b.co")
        GiftCardService(other_scope).redeem(card.id, 1200)

        assert GiftCardTransactionRepository(scope).get_by_gift_card_id(card.id) == []
        assert len(GiftCardTransactionRepository(other_scope).get_by_gift_card_id(card.id)) == 1
        assert scope.query(GiftCardTransaction).count() == 0

    def test_listing_is_scoped(self, scope, other_scope):
        GiftCardService(other_scope).issue(amount=5000, recipient_email="a@b.co")
        ours = GiftCardService(scope).issue(amount=2500, recipient_email="c@d.co")

        assert [c.id for c in GiftCardRepository(scope).get_all()] == [ours.id]
        assert scope.query(GiftCard).count() == 1
