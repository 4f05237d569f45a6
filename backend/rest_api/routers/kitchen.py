"""
Kitchen router.
Read-only queue of items being prepared or ready to serve.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rest_api.services.domain import QueryService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import KitchenTicketOutput

router = APIRouter(tags=["kitchen"])


@router.get("/api/kitchen/queue", response_model=list[KitchenTicketOutput])
def kitchen_queue(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[KitchenTicketOutput]:
    """Open orders with PREPARING/READY items, earliest sent first."""
    tickets = QueryService(db).kitchen_queue(ctx["tenant_id"])
    return [KitchenTicketOutput.model_validate(t) for t in tickets]
