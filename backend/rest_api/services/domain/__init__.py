"""
Domain Services - Clean Architecture Application Layer.

CLEAN-ARCH: Services contain business logic and orchestrate operations.
Mutating services work inside a UnitOfWork and emit one domain event per
committed call; QueryService reads committed state.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    with ledger.unit_of_work(tenant_id) as uow:
        order = OrderService(uow).add_items(order_id, items)
"""

from .catalog_service import CatalogService
from .order_service import OrderService
from .query_service import KitchenTicket, QueryService, StockAlerts
from .stock_service import StockService
from .table_service import TableService
from .table_state import TableStateMachine
from .tenant_service import TenantService

__all__ = [
    "CatalogService",
    "OrderService",
    "QueryService",
    "KitchenTicket",
    "StockAlerts",
    "StockService",
    "TableService",
    "TableStateMachine",
    "TenantService",
]
