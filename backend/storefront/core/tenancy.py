"""Store (tenant) scoping for repository queries.

Repositories never build queries from a bare ``Session``. They are handed a
``StoreScope`` and every select, conditional update and delete they issue goes
through it, so the store predicate cannot be forgotten at a call site.

Models carry the tenant either directly (a ``store_id`` column) or through a
parent row, declared as ``__scope_parent__ = (ParentModel, "fk_column")``.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import Delete, Update, delete, select, update
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement


class StoreNotConfiguredError(Exception):
    """Raised when a request cannot be attributed to a store."""


class StoreScope:
    """A session bound to one store id that only produces store-scoped statements."""

    def __init__(self, db: Session, store_id: UUID):
        if store_id is None:
            raise StoreNotConfiguredError("Store not configured")
        self.db = db
        self.store_id = store_id

    def predicate(self, model: Any) -> ColumnElement[bool]:
        """Return the SQL condition restricting ``model`` rows to this store."""
        store_column = getattr(model, "store_id", None)
        if store_column is not None:
            return store_column == self.store_id  # type: ignore[no-any-return]

        parent = getattr(model, "__scope_parent__", None)
        if parent is None:
            raise TypeError(f"{model.__name__} is not store-scoped")
        parent_model, fk_column = parent
        parent_ids = select(parent_model.id).where(self.predicate(parent_model))
        return getattr(model, fk_column).in_(parent_ids)  # type: ignore[no-any-return]

    def query(self, model: Any) -> Query:  # type: ignore[type-arg]
        return self.db.query(model).filter(self.predicate(model))

    def update(self, model: Any) -> Update:
        return update(model).where(self.predicate(model))

    def delete(self, model: Any) -> Delete:
        return delete(model).where(self.predicate(model))

    def add(self, instance: Any) -> Any:
        """Stage a new row owned by this store."""
        if hasattr(type(instance), "store_id"):
            instance.store_id = self.store_id
        self.db.add(instance)
        return instance
