"""Coupon evaluation, usage recording and administration."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from storefront.core.currency import format_cents
from storefront.core.tenancy import StoreScope
from storefront.models.coupon import Coupon, DiscountType
from storefront.models.shared import as_utc, utc_now
from storefront.repositories.coupon_repository import CouponRepository
from storefront.schemas.coupon import CouponCreate, CouponUpdate

logger = logging.getLogger(__name__)

INVALID_COUPON_CODE = "Invalid coupon code"
MIN_CODE_LENGTH = 3


class DuplicateCouponCodeError(ValueError):
    """A coupon with the same code (ignoring case) already exists in the store."""


@dataclass
class CouponEvaluation:
    """Outcome of checking a code against a cart."""

    valid: bool
    discount_amount: int = 0
    reason: str | None = None
    coupon: Coupon | None = None


def calculate_discount(discount_type: str, discount_value: int, cart_total: int) -> int:
    """Discount in cents for a cart total in cents.

    Percentage discounts round half up to the nearest cent. Fixed discounts
    never exceed the cart total.
    """
    if discount_type == DiscountType.PERCENTAGE.value:
        raw = Decimal(cart_total) * Decimal(discount_value) / Decimal(100)
        discount = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        discount = discount_value
    return max(0, min(discount, cart_total))


def check_coupon(
    coupon: Coupon, cart_total: int, now: datetime, currency: str = "USD"
) -> str | None:
    """Return the first rule the coupon fails for this cart, or None."""
    if not coupon.is_active:
        return "This coupon is not active"

    expires_at = as_utc(coupon.expires_at)  # type: ignore[arg-type]
    if expires_at is not None and expires_at < now:
        return "This coupon has expired"

    starts_at = as_utc(coupon.starts_at)  # type: ignore[arg-type]
    if starts_at is not None and starts_at > now:
        return "This coupon is not yet valid"

    if coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
        return "This coupon has reached its usage limit"

    if cart_total < coupon.minimum_order_amount:
        minimum = format_cents(int(coupon.minimum_order_amount), currency)
        return f"Minimum order of {minimum} required"

    return None


class CouponService:
    """Coupon rules for one store."""

    MAX_USAGE_ATTEMPTS = 3

    def __init__(self, scope: StoreScope, currency: str = "USD"):
        self.scope = scope
        self.currency = currency
        self.coupon_repo = CouponRepository(scope)

    def evaluate(
        self, code: str, cart_total_cents: int, now: datetime | None = None
    ) -> CouponEvaluation:
        """Decide whether ``code`` applies to the cart and compute the discount.

        Read-only: evaluating a coupon never counts as a use.

        Raises:
            ValueError: If the code is blank or the cart total is negative.
        """
        if not code or not code.strip():
            raise ValueError("Coupon code is required")
        if cart_total_cents < 0:
            raise ValueError("Valid cart total is required")

        coupon = self.coupon_repo.get_by_code(code)
        if coupon is None:
            return CouponEvaluation(valid=False, reason=INVALID_COUPON_CODE)

        reason = check_coupon(coupon, cart_total_cents, now or utc_now(), self.currency)
        if reason is not None:
            return CouponEvaluation(valid=False, reason=reason, coupon=coupon)

        discount = calculate_discount(
            str(coupon.discount_type), int(coupon.discount_value), cart_total_cents
        )
        return CouponEvaluation(valid=True, discount_amount=discount, coupon=coupon)

    def record_usage(self, code: str) -> bool:
        """Count one use of ``code`` for a finalized order.

        Returns False if the coupon is gone, already at ``max_uses``, or kept
        changing under concurrent increments.
        """
        for _ in range(self.MAX_USAGE_ATTEMPTS):
            coupon = self.coupon_repo.get_by_code(code)
            if coupon is None:
                logger.warning("Coupon %s not found while recording usage", code)
                return False
            if coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
                logger.warning("Coupon %s already at its usage limit", coupon.code)
                return False
            if self.coupon_repo.increment_uses(coupon.id, int(coupon.current_uses)):  # type: ignore[arg-type]
                return True

        logger.warning("Coupon %s usage not recorded after concurrent updates", code)
        return False

    def create_coupon(self, data: CouponCreate) -> Coupon:
        """Validate and create a coupon. The code is stored upper-cased."""
        code = self._normalize_code(data.code)
        self._check_discount(data.discount_type.value, data.discount_value)
        self._check_window(data.starts_at, data.expires_at)

        if self.coupon_repo.code_exists(code):
            raise DuplicateCouponCodeError("A coupon with this code already exists")

        normalized = data.model_copy(
            update={
                "code": code,
                "description": (data.description or "").strip() or None,
            }
        )
        return self.coupon_repo.create(normalized)

    def update_coupon(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if coupon is None:
            return None

        changes = data.model_dump(exclude_unset=True)
        if "code" in changes:
            changes["code"] = self._normalize_code(changes["code"])
            if self.coupon_repo.code_exists(changes["code"], exclude_id=coupon_id):
                raise DuplicateCouponCodeError("A coupon with this code already exists")

        discount_type = changes.get("discount_type") or DiscountType(coupon.discount_type)
        discount_value = changes.get("discount_value")
        if discount_value is None:
            discount_value = coupon.discount_value
        self._check_discount(discount_type.value, int(discount_value))

        self._check_window(
            changes.get("starts_at", coupon.starts_at),
            changes.get("expires_at", coupon.expires_at),
        )

        return self.coupon_repo.update(coupon_id, CouponUpdate(**changes))

    @staticmethod
    def _normalize_code(code: str) -> str:
        code = code.strip()
        if len(code) < MIN_CODE_LENGTH:
            raise ValueError("Code must be at least 3 characters")
        return code.upper()

    @staticmethod
    def _check_discount(discount_type: str, discount_value: int) -> None:
        if discount_value <= 0:
            raise ValueError("Discount value must be positive")
        if discount_type == DiscountType.PERCENTAGE.value and discount_value > 100:
            raise ValueError("Percentage cannot exceed 100%")

    @staticmethod
    def _check_window(starts_at: datetime | None, expires_at: datetime | None) -> None:
        starts_at, expires_at = as_utc(starts_at), as_utc(expires_at)
        if starts_at is not None and expires_at is not None and starts_at >= expires_at:
            raise ValueError("Coupon must start before it expires")
