"""Shared sorting utilities for repository queries."""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from storefront.core.database import Base


def parse_order_by(order_by: str | None) -> tuple[str | None, str | None]:
    """Split ``"field:direction"`` into its parts; direction defaults to asc."""
    if not order_by:
        return None, None
    field, _, direction = order_by.partition(":")
    return field.strip() or None, (direction.strip().lower() or "asc")


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
    allowed_fields: Collection[str] | None = None,
) -> Query:  # type: ignore[type-arg]
    """Apply ordering to a SQLAlchemy query.

    Args:
        query: The SQLAlchemy query to sort.
        model: The SQLAlchemy model class.
        order_by: Sort string in "field:direction" format (e.g. "name:asc").
            Unknown fields fall back to the default ordering; an invalid
            direction falls back to ``default_direction``.
        default_field: Default column to sort by.
        default_direction: Default sort direction ("asc" or "desc").
        allowed_fields: Columns callers may sort by. Defaults to every
            mapped column of ``model``.

    Returns:
        The query with ordering applied. The primary key is appended as a
        tie-breaker so pages are stable.
    """
    columns = {column.key for column in model.__table__.columns}
    allowed = set(allowed_fields) if allowed_fields is not None else columns

    field, direction = default_field, default_direction
    candidate_field, candidate_direction = parse_order_by(order_by)
    if candidate_field in allowed and candidate_field in columns:
        field = candidate_field
        direction = candidate_direction if candidate_direction in ("asc", "desc") else default_direction

    order_func = asc if direction == "asc" else desc
    query = query.order_by(order_func(getattr(model, field)))
    for pk in model.__table__.primary_key.columns:
        if pk.key != field:
            query = query.order_by(getattr(model, pk.key).asc())
    return query
