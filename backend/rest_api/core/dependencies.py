"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Request

from rest_api.services import Ledger


def get_ledger(request: Request) -> Ledger:
    """
    The application's Ledger, created in the lifespan handler.

    Usage:
        @router.post("/tables/{table_id}/open")
        def open_table(table_id: int, ledger: Ledger = Depends(get_ledger), ...):
            with ledger.unit_of_work(ctx["tenant_id"]) as uow:
                ...
    """
    return request.app.state.ledger
