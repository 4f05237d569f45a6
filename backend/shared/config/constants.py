"""
Centralized constants for the ledger.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import OrderStatus, ItemStatus

    if order.status == OrderStatus.PAID:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# Entity Status Constants
# =============================================================================


class TableStatus:
    """Table availability states."""

    AVAILABLE: Final[str] = "AVAILABLE"
    OCCUPIED: Final[str] = "OCCUPIED"
    RESERVED: Final[str] = "RESERVED"

    ALL: Final[tuple[str, ...]] = (AVAILABLE, OCCUPIED, RESERVED)


class OrderStatus:
    """Order (comanda) states. An order is immutable once PAID."""

    OPEN: Final[str] = "OPEN"
    PAID: Final[str] = "PAID"

    ALL: Final[tuple[str, ...]] = (OPEN, PAID)


class ItemStatus:
    """
    Kitchen status of a single order item.
    Flow: PENDING -> PREPARING -> READY -> DELIVERED (forward, one step at a time).
    """

    PENDING: Final[str] = "PENDING"
    PREPARING: Final[str] = "PREPARING"
    READY: Final[str] = "READY"
    DELIVERED: Final[str] = "DELIVERED"

    FLOW: Final[tuple[str, ...]] = (PENDING, PREPARING, READY, DELIVERED)

    # Items the kitchen screen shows
    KITCHEN_VISIBLE: Final[tuple[str, ...]] = (PREPARING, READY)

    @classmethod
    def predecessor(cls, status: str) -> str | None:
        """Status an item must be in to move to `status`, None for the first state."""
        index = cls.FLOW.index(status)
        return cls.FLOW[index - 1] if index > 0 else None


class PaymentMethod:
    """Payment outcome recorded on close. Processing happens elsewhere."""

    CASH: Final[str] = "CASH"
    CARD: Final[str] = "CARD"
    TRANSFER: Final[str] = "TRANSFER"

    ALL: Final[tuple[str, ...]] = (CASH, CARD, TRANSFER)


class AuditAction:
    """Actions recorded in the audit log."""

    STOCK_ADJUST: Final[str] = "STOCK_ADJUST"


class StockReason:
    """System-generated reasons for order-driven stock movements."""

    SALE: Final[str] = "Venta"
    CANCELLATION: Final[str] = "Cancelación"
    INITIAL: Final[str] = "Stock inicial"


# =============================================================================
# Subscription Plans
# =============================================================================


class PlanTier(str, Enum):
    """Subscription plan tiers."""

    BASIC = "BASIC"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


class PlanLimits:
    """Per-plan resource limits."""

    def __init__(self, users: int, tables: int, products: int):
        self.users = users
        self.tables = tables
        self.products = products

    def as_dict(self) -> dict[str, int]:
        return {"users": self.users, "tables": self.tables, "products": self.products}


PLAN_LIMITS: Final[dict[PlanTier, PlanLimits]] = {
    PlanTier.BASIC: PlanLimits(users=1, tables=10, products=50),
    PlanTier.PRO: PlanLimits(users=3, tables=50, products=200),
    PlanTier.ENTERPRISE: PlanLimits(users=9999, tables=9999, products=9999),
}


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits for input fields."""

    MAX_ITEM_QTY: Final[int] = 99
    MAX_ITEMS_PER_CALL: Final[int] = 50
    MAX_NOTES_LENGTH: Final[int] = 200
    MAX_REASON_LENGTH: Final[int] = 200
    MAX_NAME_LENGTH: Final[int] = 120
    DEFAULT_STOCK_MIN: Final[int] = 5
    DEFAULT_PAGE_SIZE: Final[int] = 100
    MAX_PAGE_SIZE: Final[int] = 500
