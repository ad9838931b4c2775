"""Order, order item and product repositories."""

from typing import Any
from uuid import UUID

from storefront.core.tenancy import StoreScope
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product


class ProductRepository:
    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def get_by_id(self, product_id: UUID) -> Product | None:
        return self.scope.query(Product).filter(Product.id == product_id).first()


class OrderRepository:
    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def get_by_id(self, order_id: UUID) -> Order | None:
        return self.scope.query(Order).filter(Order.id == order_id).first()

    def get_by_payment_session_id(self, session_id: str) -> Order | None:
        return self.scope.query(Order).filter(Order.payment_session_id == session_id).first()

    def create(self, items: list[dict[str, Any]], **fields: Any) -> Order:
        """Insert an order and its items in one commit."""
        order = Order(**fields)
        order.items = [OrderItem(**item) for item in items]
        self.scope.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def mark_coupon_usage_recorded(self, order_id: UUID) -> bool:
        result = self.db.execute(
            self.scope.update(Order)
            .where(Order.id == order_id, Order.coupon_usage_recorded.is_(False))
            .values(coupon_usage_recorded=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]


class OrderItemRepository:
    def __init__(self, scope: StoreScope):
        self.scope = scope
        self.db = scope.db

    def get_by_download_token(self, token: str) -> OrderItem | None:
        return self.scope.query(OrderItem).filter(OrderItem.download_token == token).first()

    def get_download_count(self, item_id: UUID) -> int | None:
        row = (
            self.scope.query(OrderItem)
            .filter(OrderItem.id == item_id)
            .with_entities(OrderItem.download_count)
            .first()
        )
        return None if row is None else int(row[0])

    def increment_download_count(self, item_id: UUID, expected_count: int) -> bool:
        """Compare-and-swap ``download_count`` from ``expected_count`` to the next value."""
        result = self.db.execute(
            self.scope.update(OrderItem)
            .where(OrderItem.id == item_id, OrderItem.download_count == expected_count)
            .values(download_count=expected_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]
