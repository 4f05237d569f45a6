"""
Tenant router.
Plan, limits and current usage of the caller's restaurant.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rest_api.services.domain import TenantService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import TenantOutput

router = APIRouter(tags=["tenant"])


@router.get("/api/tenant", response_model=TenantOutput)
def get_tenant(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TenantOutput:
    service = TenantService(db)
    tenant = service.get_tenant(ctx["tenant_id"])
    return TenantOutput(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        plan=tenant.plan,
        limits=tenant.limits.as_dict(),
        usage=service.usage(tenant.id),
    )
