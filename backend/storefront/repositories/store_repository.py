from uuid import UUID

from sqlalchemy.orm import Session

from storefront.models.store import Store


class StoreRepository:
    """Access to the tenant table itself, the one unscoped repository."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, store_id: UUID) -> Store | None:
        return self.db.query(Store).filter(Store.id == store_id).first()

    def get_all(self) -> list[Store]:
        return self.db.query(Store).order_by(Store.created_at.asc()).all()

    def create(self, name: str, currency: str = "USD", store_id: UUID | None = None) -> Store:
        store = Store(id=store_id, name=name, currency=currency)
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store
