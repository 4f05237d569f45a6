"""
Orders router.
Handles the order (comanda) lifecycle: items, kitchen flow and payment.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rest_api.core.dependencies import get_ledger
from rest_api.services import Ledger
from rest_api.services.domain import OrderService, QueryService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    AddItemsRequest,
    CloseOrderRequest,
    CreateOrderRequest,
    OrderOutput,
    UpdateItemStatusRequest,
)

router = APIRouter(tags=["orders"])


@router.post("/api/orders", response_model=OrderOutput)
def create_order(
    body: CreateOrderRequest,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """
    Get or create the OPEN order of a table.

    Idempotent: calling it twice returns the same order.
    """
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).create_order(body.table_id)
        return OrderOutput.model_validate(order)


@router.get("/api/orders/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    return OrderOutput.model_validate(QueryService(db).get_order(order_id, ctx["tenant_id"]))


@router.post(
    "/api/orders/{order_id}/items",
    response_model=OrderOutput,
    status_code=status.HTTP_201_CREATED,
)
def add_items(
    order_id: int,
    body: AddItemsRequest,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Add products to the order. Prices come from the catalog."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).add_items(order_id, body.items, actor_user_id=ctx["user_id"])
        return OrderOutput.model_validate(order)


@router.delete("/api/orders/{order_id}/items/{product_id}", response_model=OrderOutput)
def remove_item(
    order_id: int,
    product_id: int,
    force: bool = Query(default=False, description="Also remove items already sent to the kitchen"),
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).remove_item(
            order_id, product_id, force=force, actor_user_id=ctx["user_id"]
        )
        return OrderOutput.model_validate(order)


@router.post("/api/orders/{order_id}/send", response_model=OrderOutput)
def send_to_kitchen(
    order_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Send every PENDING item to the kitchen."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).send_to_kitchen(order_id)
        return OrderOutput.model_validate(order)


@router.patch("/api/orders/{order_id}/items/{product_id}/status", response_model=OrderOutput)
def update_item_status(
    order_id: int,
    product_id: int,
    body: UpdateItemStatusRequest,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Move one item of the product a single step forward."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).update_item_status(order_id, product_id, body.status)
        return OrderOutput.model_validate(order)


@router.post("/api/orders/{order_id}/deliver", response_model=OrderOutput)
def deliver_ready_items(
    order_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).deliver_ready_items(order_id)
        return OrderOutput.model_validate(order)


@router.post("/api/orders/{order_id}/close", response_model=OrderOutput)
def close_order(
    order_id: int,
    body: CloseOrderRequest,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> OrderOutput:
    """Record payment and free the table."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        order = OrderService(uow).close_order(
            order_id, actor_user_id=ctx["user_id"], payment_method=body.payment_method
        )
        return OrderOutput.model_validate(order)
