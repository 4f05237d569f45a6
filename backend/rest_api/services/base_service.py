"""
Base Service Class for ledger mutations.

CLEAN-ARCH: Provides the common infrastructure of every mutating service:
- Unit of work access (session, tenant)
- Tenant-scoped repositories
- Actor validation
- Single-event commit

Architecture:
    Router (thin) → Service (business logic) → Repository (data access) → Model

Usage:
    from rest_api.services.base_service import LedgerService

    class StockService(LedgerService):
        def adjust_stock(self, product_id, actor_user_id, delta, reason):
            product = self.repo(Product, "Producto").require(product_id, self.tenant_id)
            ...
            self.emit(StockAdjusted(...))
"""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy.orm import Session

from rest_api.models import Base, User
from rest_api.services.crud.repository import TenantRepository
from rest_api.services.events import DomainEvent
from rest_api.services.unit_of_work import UnitOfWork

ModelT = TypeVar("ModelT", bound=Base)


class LedgerService:
    """
    Base service bound to one unit of work.

    Subclasses implement the business rules; this class provides session,
    tenant and repository access plus the commit step.
    """

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    @property
    def uow(self) -> UnitOfWork:
        return self._uow

    @property
    def db(self) -> Session:
        """Database session of the unit of work."""
        return self._uow.session

    @property
    def tenant_id(self) -> int:
        return self._uow.tenant_id

    def repo(self, model: type[ModelT], entity_name: str) -> TenantRepository[ModelT]:
        """Tenant-scoped repository for a model."""
        return TenantRepository(model, self.db, entity_name=entity_name)

    def require_actor(self, user_id: int | None) -> int | None:
        """Validate that the acting user belongs to the tenant. None means system."""
        if user_id is None:
            return None
        self.repo(User, "Usuario").require(user_id, self.tenant_id)
        return user_id

    def emit(self, event: DomainEvent) -> None:
        """Stage the mutation's event and commit the unit of work."""
        self._uow.stage(event)
        self._uow.commit()
