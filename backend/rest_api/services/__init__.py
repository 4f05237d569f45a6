"""
Services module for business logic.

CLEAN ARCHITECTURE:
- domain/: Application services (business logic)
- crud/: Tenant-scoped repository
- events/: Domain events and the transactional outbox
- unit_of_work: Tenant-serialized transaction wrapper

Usage:
    from rest_api.services import Ledger
    from rest_api.services.domain import TableService

    ledger = Ledger()
    with ledger.unit_of_work(tenant_id) as uow:
        order = TableService(uow).open_table(table_id)
"""

from .unit_of_work import Ledger, UnitOfWork

__all__ = [
    "Ledger",
    "UnitOfWork",
]
