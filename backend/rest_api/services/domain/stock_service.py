"""
Stock Domain Service.

Every change of Product.stock_quantity goes through apply_delta(), which
writes one AuditLog row with the before/after snapshot. Stock never goes
below zero: a decrement that would is rejected, not clamped.
"""

from __future__ import annotations

from rest_api.models import AuditLog, Product
from rest_api.services.base_service import LedgerService
from rest_api.services.events import StockAdjusted
from shared.config.constants import AuditAction, Limits
from shared.config.logging import get_logger
from shared.utils.exceptions import InsufficientStockError, ValidationError

logger = get_logger(__name__)


class StockService(LedgerService):
    """
    Domain service for stock movements.

    Usage:
        with ledger.unit_of_work(tenant_id) as uow:
            product, log = StockService(uow).adjust_stock(product_id, user_id, -3, "Merma")
    """

    def apply_delta(
        self,
        product: Product,
        delta: int,
        reason: str,
        actor_user_id: int | None = None,
    ) -> AuditLog | None:
        """
        Move stock of a stock-enabled product and record it.

        Shared by manual adjustments, order items and catalog inserts.
        Products without stock control are left untouched (returns None).
        Does not commit.

        Raises:
            InsufficientStockError: If the result would be negative.
        """
        if not product.stock_enabled or delta == 0:
            return None

        before = product.stock_quantity
        after = before + delta
        if after < 0:
            raise InsufficientStockError(
                product.id,
                available=before,
                requested=-delta,
                tenant_id=self.tenant_id,
            )

        product.stock_quantity = after
        log = AuditLog(
            tenant_id=self.tenant_id,
            actor_user_id=actor_user_id,
            action=AuditAction.STOCK_ADJUST,
            entity_type="product",
            entity_id=product.id,
            before={"stock": before},
            after={"stock": after},
            reason=reason,
        )
        self.db.add(log)
        return log

    def adjust_stock(
        self,
        product_id: int,
        actor_user_id: int | None,
        delta: int,
        reason: str,
    ) -> tuple[Product, AuditLog]:
        """
        Manual stock adjustment (restock, waste, count correction).

        Raises:
            ValidationError: Blank reason, zero delta or product without stock control.
            NotFoundError: Unknown or inactive product.
            InsufficientStockError: Adjustment would leave negative stock.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("El motivo del ajuste es obligatorio", product_id=product_id)
        if len(reason) > Limits.MAX_REASON_LENGTH:
            raise ValidationError(
                f"El motivo no puede superar {Limits.MAX_REASON_LENGTH} caracteres",
                product_id=product_id,
            )
        if delta == 0:
            raise ValidationError("El ajuste debe ser distinto de cero", product_id=product_id)

        product = self.repo(Product, "Producto").require(
            product_id, self.tenant_id, for_update=True
        )
        if not product.stock_enabled:
            raise ValidationError(
                f"El producto {product.name} no tiene control de stock",
                product_id=product_id,
            )

        actor_user_id = self.require_actor(actor_user_id)
        log = self.apply_delta(product, delta, reason, actor_user_id)
        self.db.flush()

        self.emit(
            StockAdjusted(
                tenant_id=self.tenant_id,
                product_id=product.id,
                before=log.before["stock"],
                after=log.after["stock"],
                delta=delta,
                reason=reason,
                audit_log_id=log.id,
            )
        )

        logger.info(
            "Stock adjusted",
            tenant_id=self.tenant_id,
            product_id=product.id,
            delta=delta,
            stock=product.stock_quantity,
        )
        return product, log
