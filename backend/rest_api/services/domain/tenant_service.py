"""
Tenant Service - plan limits and usage.

Tenants and users are created outside the ledger; this service only reads
them and enforces plan limits on insertion of tables and products.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import Product, Table, Tenant, User
from shared.utils.exceptions import NotFoundError, PlanLimitError

# Resource name -> (model, label used in messages)
_RESOURCES: dict[str, tuple[type, str]] = {
    "users": (User, "usuarios"),
    "tables": (Table, "mesas"),
    "products": (Product, "productos"),
}


class TenantService:
    """Read-only tenant access."""

    def __init__(self, db: Session):
        self._db = db

    def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = self._db.scalar(
            select(Tenant).where(Tenant.id == tenant_id, Tenant.is_active.is_(True))
        )
        if tenant is None:
            raise NotFoundError("Restaurante", tenant_id)
        return tenant

    def count_active(self, tenant_id: int, resource: str) -> int:
        model, _ = _RESOURCES[resource]
        return self._db.scalar(
            select(func.count())
            .select_from(model)
            .where(model.tenant_id == tenant_id, model.is_active.is_(True))
        ) or 0

    def usage(self, tenant_id: int) -> dict[str, int]:
        """Active rows per limited resource."""
        return {resource: self.count_active(tenant_id, resource) for resource in _RESOURCES}

    def ensure_capacity(self, tenant_id: int, resource: str) -> None:
        """
        Raise PlanLimitError if the tenant cannot add one more `resource`.
        """
        tenant = self.get_tenant(tenant_id)
        limit = getattr(tenant.limits, resource)
        if self.count_active(tenant_id, resource) >= limit:
            _, label = _RESOURCES[resource]
            raise PlanLimitError(label, limit, tenant_id=tenant_id, plan=tenant.plan)
