"""Persistence-only repository base for SQLAlchemy 2.x.

Repositories stage, flush and query; the unit of work owns commit and
rollback. Updates go through a per-repository whitelist of assignable fields.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from authority.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


@dataclass(slots=True)
class Pagination:
    """Requested page (1-based) and page size."""

    page: int
    limit: int


@dataclass(slots=True)
class Page(Generic[E]):
    """One page of entities plus the unfiltered-by-page total."""

    items: Sequence[E]
    total: int
    page: int
    limit: int


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    page: int,
    limit: int,
) -> tuple[list[Any], int]:
    """
    Run ``stmt`` for one page and count every row it matches.

    ``page`` and ``limit`` are clamped to at least 1. The count query drops
    the ordering.
    """
    page, limit = max(int(page), 1), max(int(limit), 1)
    total = int(
        session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
    )
    rows = session.execute(stmt.limit(limit).offset((page - 1) * limit)).scalars()
    return list(rows), total


class BaseRepository(Generic[E]):
    """Repository over one mapped ``model``; subclasses declare the whitelists."""

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Bind to ``session``, or to ``db.session`` when omitted."""
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        return getattr(self.model, "id", None)

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist of equality-filterable public keys. Unknown keys are ignored."""
        return {}

    def _updatable_fields(self) -> set[str]:
        """Whitelist of public keys that can be assigned on update."""
        return set()

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        if not filters:
            return stmt
        allowed = self._filterable_fields()
        clauses = [
            allowed[k] == v for k, v in filters.items() if k in allowed and v is not None
        ]
        return stmt.where(and_(*clauses)) if clauses else stmt

    def _sanitize_update_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Return only whitelisted update keys.

        :raises ValueError: On unknown keys, or when nothing is updatable.
        """
        allowed = self._updatable_fields()
        if not allowed and fields:
            raise ValueError("No updatable fields configured for this repository.")
        unknown = [k for k in fields if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        return dict(fields)

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key.

        :raises RuntimeError: If no PK attribute can be detected.
        """
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get requires a detectable PK attribute.")
        result = self.session.execute(select(self.model).where(pk_attr == entity_id))
        return cast(E | None, result.scalars().first())

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()

    def update(self, instance: E, **fields: Any) -> E:
        """Assign whitelisted keys and flush.

        Uses ``setattr`` so ``@validates`` hooks on the mapped class run.
        """
        for k, v in self._sanitize_update_fields(fields).items():
            setattr(instance, k, v)
        self.flush()
        return instance

    def paginate(
        self,
        pagination: Pagination,
        *,
        filters: Mapping[str, Any] | None = None,
    ) -> Page[E]:
        """Paginate entities with a stable primary-key order."""
        stmt: Select[Any] = select(self.model)
        stmt = self._apply_equality_filters(stmt, filters)
        pk_attr = self._pk_attr()
        if pk_attr is not None:
            stmt = stmt.order_by(pk_attr.asc())
        raw_items, total = paginate_select(
            self.session, stmt, page=pagination.page, limit=pagination.limit
        )
        return Page(
            items=cast(list[E], raw_items),
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )
