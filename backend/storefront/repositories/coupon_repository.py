"""Coupon repository for data access."""

from uuid import UUID

from sqlalchemy import func, or_

from storefront.core.sorting import apply_order_by
from storefront.core.tenancy import StoreScope
from storefront.models.coupon import Coupon
from storefront.schemas.coupon import CouponCreate, CouponUpdate


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        is_active: bool | None = None,
    ) -> list[Coupon]:
        query = self.scope.query(Coupon)
        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)
        query = apply_order_by(query, Coupon, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self) -> int:
        return self.scope.query(Coupon).count()

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        return self.scope.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by code, ignoring case."""
        return (
            self.scope.query(Coupon)
            .filter(func.lower(Coupon.code) == code.strip().lower())
            .first()
        )

    def code_exists(self, code: str, exclude_id: UUID | None = None) -> bool:
        query = self.scope.query(Coupon).filter(func.lower(Coupon.code) == code.strip().lower())
        if exclude_id is not None:
            query = query.filter(Coupon.id != exclude_id)
        return query.first() is not None

    def create(self, data: CouponCreate) -> Coupon:
        coupon = Coupon(
            code=data.code,
            description=data.description,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            minimum_order_amount=data.minimum_order_amount,
            max_uses=data.max_uses,
            starts_at=data.starts_at,
            expires_at=data.expires_at,
            is_active=data.is_active,
        )
        self.scope.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("discount_type") is not None:
            update_data["discount_type"] = update_data["discount_type"].value

        for key, value in update_data.items():
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete(self, coupon_id: UUID) -> bool:
        result = self.db.execute(
            self.scope.delete(Coupon)
            .where(Coupon.id == coupon_id)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]

    def increment_uses(self, coupon_id: UUID, expected_uses: int) -> bool:
        """Bump current_uses by one if it still equals ``expected_uses``.

        Never moves past ``max_uses``. Returns False when the row changed
        underneath the caller or the cap is already reached.
        """
        result = self.db.execute(
            self.scope.update(Coupon)
            .where(
                Coupon.id == coupon_id,
                Coupon.current_uses == expected_uses,
                or_(Coupon.max_uses.is_(None), Coupon.current_uses < Coupon.max_uses),
            )
            .values(current_uses=expected_uses + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]
