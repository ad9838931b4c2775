"""Sorting for admin list endpoints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: Any,
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Order a query by a "field:direction" string such as "code:asc".

    Unknown columns fall back to ``default_field``; an unknown direction falls
    back to ``default_direction``.
    """
    field, direction = default_field, default_direction

    if order_by:
        candidate_field, _, candidate_direction = order_by.partition(":")
        if candidate_field in model.__table__.columns:
            field = candidate_field
            direction = candidate_direction if candidate_direction in ("asc", "desc") else "asc"

    order_func = asc if direction == "asc" else desc
    return query.order_by(order_func(getattr(model, field)))
