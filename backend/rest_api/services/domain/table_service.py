"""
Table Service - floor layout and table state machine.

Business rules:
- Table numbers are unique among the tenant's active tables
- A table created without a number gets the highest numeric label + 1
- A table becomes OCCUPIED only together with a new OPEN order
- An OCCUPIED table can only be freed by closing its order
- Removal is a soft delete and is refused while the table is occupied
"""

from __future__ import annotations

from sqlalchemy import select

from rest_api.models import Order, Table
from rest_api.services.base_service import LedgerService
from rest_api.services.events import TableUpdated
from shared.config.constants import TableStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import DuplicateEntityError, ValidationError
from shared.utils.schemas import TableCreate, TableUpdate

from .order_service import OrderService
from .table_state import TableStateMachine
from .tenant_service import TenantService

logger = get_logger(__name__)


class TableService(LedgerService):
    """Service for table management."""

    def __init__(self, uow):
        super().__init__(uow)
        self._tables = self.repo(Table, "Mesa")

    def _ensure_unique_number(self, number: str, exclude_id: int | None = None) -> None:
        criteria = [Table.number == number]
        if exclude_id is not None:
            criteria.append(Table.id != exclude_id)
        if self._tables.exists(self.tenant_id, *criteria):
            raise DuplicateEntityError("Mesa", number, tenant_id=self.tenant_id)

    def _next_table_number(self) -> str:
        numbers = self.db.scalars(
            select(Table.number).where(
                Table.tenant_id == self.tenant_id,
                Table.is_active.is_(True),
            )
        ).all()
        numeric = [int(n) for n in numbers if n.isdecimal()]
        if not numeric:
            return str(len(numbers) + 1)
        return str(max(numeric) + 1)

    def _table_updated(self, table: Table, action: str, order: Order | None = None) -> TableUpdated:
        return TableUpdated(
            tenant_id=self.tenant_id,
            table_id=table.id,
            number=table.number,
            status=table.status,
            action=action,
            order_id=order.id if order is not None else None,
        )

    def open_table(self, table_id: int) -> Order:
        """
        AVAILABLE/RESERVED -> OCCUPIED with a new OPEN order.

        Raises:
            ConflictError: The table already has an OPEN order.
        """
        return OrderService(self.uow).open_order(table_id)

    def create_table(self, data: TableCreate, actor_user_id: int | None = None) -> Table:
        TenantService(self.db).ensure_capacity(self.tenant_id, "tables")
        number = data.number or self._next_table_number()
        self._ensure_unique_number(number)
        if data.status == TableStatus.OCCUPIED:
            raise ValidationError("Una mesa nueva no puede crearse ocupada")

        table = Table(
            tenant_id=self.tenant_id,
            number=number,
            capacity=data.capacity,
            zone=data.zone,
            status=data.status,
        )
        table.set_created_by(self.require_actor(actor_user_id))
        self._tables.add(table)
        self.db.flush()

        self.emit(self._table_updated(table, "created"))
        logger.info("Table created", tenant_id=self.tenant_id, table_id=table.id, number=table.number)
        return table

    def update_table(
        self,
        table_id: int,
        data: TableUpdate,
        actor_user_id: int | None = None,
    ) -> Table:
        """
        Edit number, capacity, zone or status.

        AVAILABLE <-> RESERVED is a plain edit. Setting OCCUPIED opens the
        table exactly like open_table. Leaving OCCUPIED is a ConflictError.
        An edit that changes nothing is a no-op without event.
        """
        table = self._tables.require(table_id, self.tenant_id, for_update=True)
        changes = data.model_dump(exclude_unset=True)
        changed = False
        opened: Order | None = None

        number = changes.get("number")
        if number is not None and number != table.number:
            self._ensure_unique_number(number, exclude_id=table.id)
            table.number = number
            changed = True

        capacity = changes.get("capacity")
        if capacity is not None and capacity != table.capacity:
            table.capacity = capacity
            changed = True

        if "zone" in changes and changes["zone"] != table.zone:
            table.zone = changes["zone"]
            changed = True

        status = changes.get("status")
        if status is not None and TableStateMachine.check_manual(table, status):
            if status == TableStatus.OCCUPIED:
                opened = OrderService(self.uow).bind_new_order(table)
            else:
                table.status = status
            changed = True

        if not changed:
            return table

        table.set_updated_by(self.require_actor(actor_user_id))
        self.db.flush()
        self.emit(self._table_updated(table, "opened" if opened else "updated", opened))

        logger.info(
            "Table updated",
            tenant_id=self.tenant_id,
            table_id=table.id,
            status=table.status,
            fields=sorted(changes),
        )
        return table

    def remove_table(self, table_id: int, actor_user_id: int | None = None) -> Table:
        """
        Soft delete a table.

        Raises:
            ValidationError: The table is OCCUPIED.
        """
        table = self._tables.require(table_id, self.tenant_id, for_update=True)
        if table.status == TableStatus.OCCUPIED:
            raise ValidationError(
                f"La mesa {table.number} está ocupada; cierre la comanda antes de eliminarla",
                table_id=table.id,
            )

        table.soft_delete(self.require_actor(actor_user_id))
        self.db.flush()
        self.emit(self._table_updated(table, "removed"))

        logger.info("Table removed", tenant_id=self.tenant_id, table_id=table.id)
        return table
