"""
Generic query router.
Filtered reads over any ledger entity for collaborators (reports, exports).
"""

from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from rest_api.services.domain import QueryService
from shared.config.constants import Limits
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    AuditLogOutput,
    CategoryOutput,
    OrderOutput,
    ProductOutput,
    QueryFilter,
    TableOutput,
)

router = APIRouter(tags=["query"])

_OUTPUTS: dict[str, type[BaseModel]] = {
    "tables": TableOutput,
    "orders": OrderOutput,
    "products": ProductOutput,
    "categories": CategoryOutput,
    "audit_logs": AuditLogOutput,
}


@router.get("/api/query/{entity_type}")
def query_entities(
    entity_type: str,
    status_filter: str | None = Query(default=None, alias="status"),
    table_id: int | None = None,
    category_id: int | None = None,
    product_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    date_field: Literal["created_at", "closed_at"] = "created_at",
    search: str | None = None,
    include_inactive: bool = False,
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[dict[str, Any]]:
    """
    Entities of one type matching the filters. An unknown entity type
    yields an empty list, as does a filter nothing matches.
    """
    output = _OUTPUTS.get(entity_type)
    if output is None:
        return []

    flt = QueryFilter(
        status=status_filter,
        table_id=table_id,
        category_id=category_id,
        product_id=product_id,
        date_from=date_from,
        date_to=date_to,
        date_field=date_field,
        search=search,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )
    rows = QueryService(db).query(entity_type, ctx["tenant_id"], flt)
    return [output.model_validate(row).model_dump(mode="json") for row in rows]
