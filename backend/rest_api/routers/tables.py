"""
Tables router.
Handles the floor layout and opening tables.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rest_api.core.dependencies import get_ledger
from rest_api.services import Ledger
from rest_api.services.domain import QueryService, TableService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    OrderOutput,
    QueryFilter,
    TableCreate,
    TableOutput,
    TableUpdate,
)

router = APIRouter(tags=["tables"])


@router.get("/api/tables", response_model=list[TableOutput])
def list_tables(
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TableOutput]:
    """Tables of the tenant ordered by number."""
    flt = QueryFilter(status=status_filter, search=search, include_inactive=include_inactive)
    tables = QueryService(db).query("tables", ctx["tenant_id"], flt)
    return [TableOutput.model_validate(t) for t in tables]


@router.post("/api/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        table = TableService(uow).create_table(body, actor_user_id=ctx["user_id"])
        return TableOutput.model_validate(table)


@router.get("/api/tables/{table_id}", response_model=TableOutput)
def get_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    return TableOutput.model_validate(QueryService(db).get_table(table_id, ctx["tenant_id"]))


@router.patch("/api/tables/{table_id}", response_model=TableOutput)
def update_table(
    table_id: int,
    body: TableUpdate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    """
    Edit a table. Setting status OCCUPIED opens it; an occupied table
    can only be freed by closing its order.
    """
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        table = TableService(uow).update_table(table_id, body, actor_user_id=ctx["user_id"])
        return TableOutput.model_validate(table)


@router.delete("/api/tables/{table_id}", response_model=TableOutput)
def remove_table(
    table_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        table = TableService(uow).remove_table(table_id, actor_user_id=ctx["user_id"])
        return TableOutput.model_validate(table)


@router.post(
    "/api/tables/{table_id}/open",
    response_model=OrderOutput,
    status_code=status.HTTP_201_CREATED,
)
def open_table(
    table_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Occupy the table with a new order. 409 if it already has one."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = TableService(uow).open_table(table_id)
        return OrderOutput.model_validate(order)


@router.get("/api/tables/{table_id}/order", response_model=OrderOutput | None)
def get_table_order(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput | None:
    """The table's OPEN order, or null when the table is free."""
    service = QueryService(db)
    service.get_table(table_id, ctx["tenant_id"])
    order = service.get_active_order_for_table(table_id, ctx["tenant_id"])
    return OrderOutput.model_validate(order) if order is not None else None
