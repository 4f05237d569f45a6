"""
Table status transitions.

    AVAILABLE <-> RESERVED      manual edit
    AVAILABLE/RESERVED -> OCCUPIED   only together with a new OPEN order
    OCCUPIED -> AVAILABLE       only when the order is closed

Kept free of order logic so both OrderService and TableService can use it.
"""

from __future__ import annotations

from rest_api.models import Table
from shared.config.constants import TableStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import ConflictError, InvalidTransitionError, ValidationError

logger = get_logger(__name__)


class TableStateMachine:
    """Applies status transitions to a Table row. Caller commits."""

    @staticmethod
    def occupy(table: Table) -> None:
        if table.status == TableStatus.OCCUPIED:
            raise ConflictError(
                f"La mesa {table.number} ya está ocupada",
                table_id=table.id,
            )
        table.status = TableStatus.OCCUPIED

    @staticmethod
    def release(table: Table) -> None:
        if table.status != TableStatus.OCCUPIED:
            logger.warning(
                "Releasing table that was not occupied",
                table_id=table.id,
                status=table.status,
            )
        table.status = TableStatus.AVAILABLE

    @staticmethod
    def check_manual(table: Table, target: str) -> bool:
        """
        Validate a status set by a table edit.

        Returns:
            True if the status changes, False if it is already `target`.
        """
        if target not in TableStatus.ALL:
            raise ValidationError(f"Estado de mesa inválido: {target}", table_id=table.id)
        if target == table.status:
            return False
        if table.status == TableStatus.OCCUPIED:
            # Only closing the order frees the table
            raise InvalidTransitionError("Mesa", table.status, target, table_id=table.id)
        return True
