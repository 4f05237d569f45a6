"""
Repository Pattern for database access.

Provides a thin data-access layer with built-in multi-tenant isolation:
every query is filtered by tenant_id, so ids that exist in another tenant
behave exactly like ids that do not exist.

Usage:
    from rest_api.services.crud.repository import TenantRepository

    product_repo = TenantRepository(Product, db)

    product = product_repo.find_by_id(42, tenant_id=1)
    product = product_repo.require(42, tenant_id=1, for_update=True)

    # With eager loading
    order_repo.find_by_id(7, tenant_id=1, options=[selectinload(Order.items)])
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import exists as sql_exists
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from rest_api.models import Base
from shared.utils.exceptions import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


class TenantRepository(Generic[ModelT]):
    """
    Repository with automatic multi-tenant isolation.

    The model must have a `tenant_id` column. Soft-deleted rows are hidden
    unless include_inactive is set.

    Usage:
        repo = TenantRepository(Category, db, entity_name="Categoría")
        category = repo.require(category_id, tenant_id=1)
    """

    def __init__(self, model: type[ModelT], session: Session, entity_name: str | None = None):
        if not hasattr(model, "tenant_id"):
            raise AttributeError(f"Model {model.__name__} does not have tenant_id column")
        self._model = model
        self._session = session
        self._entity_name = entity_name or model.__name__

    def _tenant_query(self, tenant_id: int) -> Select:
        """Create tenant-filtered base query."""
        return select(self._model).where(self._model.tenant_id == tenant_id)

    def _apply_active_filter(self, query: Select, include_inactive: bool) -> Select:
        """Apply is_active filter if model has it."""
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return query

    def find_by_id(
        self,
        entity_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> ModelT | None:
        """
        Find entity by ID within tenant scope.

        Args:
            entity_id: The primary key value.
            tenant_id: The tenant ID for isolation.
            options: SQLAlchemy loader options.
            include_inactive: Include soft-deleted entities.
            for_update: Lock the row (ignored by SQLite).

        Returns:
            Entity or None if not found or wrong tenant.
        """
        query = self._tenant_query(tenant_id).where(self._model.id == entity_id)
        query = self._apply_active_filter(query, include_inactive)
        if options:
            query = query.options(*options)
        if for_update:
            query = query.with_for_update()
        return self._session.scalar(query)

    def require(
        self,
        entity_id: int,
        tenant_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> ModelT:
        """Same as find_by_id but raises NotFoundError when missing."""
        entity = self.find_by_id(
            entity_id,
            tenant_id,
            options=options,
            include_inactive=include_inactive,
            for_update=for_update,
        )
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id, tenant_id=tenant_id)
        return entity

    def find_by_ids(
        self,
        entity_ids: Sequence[int],
        tenant_id: int,
        *,
        include_inactive: bool = False,
        for_update: bool = False,
    ) -> Sequence[ModelT]:
        """
        Find multiple entities by IDs within tenant scope.

        Returns:
            Sequence of found entities (may be less than requested).
        """
        if not entity_ids:
            return []

        query = self._tenant_query(tenant_id).where(self._model.id.in_(entity_ids))
        query = self._apply_active_filter(query, include_inactive)
        if for_update:
            query = query.with_for_update()
        return self._session.scalars(query).all()

    def count(self, tenant_id: int, *criteria: Any, include_inactive: bool = False) -> int:
        """Count entities within tenant scope, optionally narrowed by criteria."""
        query = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.tenant_id == tenant_id, *criteria)
        )
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        return self._session.scalar(query) or 0

    def exists(self, tenant_id: int, *criteria: Any) -> bool:
        """Check if an active entity matching criteria exists within tenant scope."""
        conditions = [self._model.tenant_id == tenant_id, *criteria]
        if hasattr(self._model, "is_active"):
            conditions.append(self._model.is_active.is_(True))
        return self._session.scalar(select(sql_exists().where(*conditions))) or False

    def add(self, entity: ModelT) -> ModelT:
        """Add entity to session (not committed)."""
        self._session.add(entity)
        return entity
