"""
Stock router.
Manual adjustments, alerts and the audit trail.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rest_api.core.dependencies import get_ledger
from rest_api.services import Ledger
from rest_api.services.domain import QueryService, StockService
from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    AuditLogOutput,
    ProductOutput,
    QueryFilter,
    StockAdjustOutput,
    StockAdjustRequest,
    StockAlertsOutput,
)

router = APIRouter(tags=["stock"])


@router.post("/api/products/{product_id}/stock", response_model=StockAdjustOutput)
def adjust_stock(
    product_id: int,
    body: StockAdjustRequest,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StockAdjustOutput:
    """Add (positive delta) or remove (negative delta) stock with a reason."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        product, log = StockService(uow).adjust_stock(
            product_id, ctx["user_id"], body.delta, body.reason
        )
        return StockAdjustOutput(
            product=ProductOutput.model_validate(product),
            audit_log=AuditLogOutput.model_validate(log),
        )


@router.get("/api/stock/alerts", response_model=StockAlertsOutput)
def stock_alerts(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> StockAlertsOutput:
    alerts = QueryService(db).stock_alerts(ctx["tenant_id"])
    return StockAlertsOutput(
        low_stock=[ProductOutput.model_validate(p) for p in alerts.low_stock],
        out_of_stock=[ProductOutput.model_validate(p) for p in alerts.out_of_stock],
    )


@router.get("/api/audit-logs", response_model=list[AuditLogOutput])
def list_audit_logs(
    product_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[AuditLogOutput]:
    """Stock history, newest first."""
    flt = QueryFilter(
        product_id=product_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    logs = QueryService(db).query("audit_logs", ctx["tenant_id"], flt)
    return [AuditLogOutput.model_validate(log) for log in logs]
