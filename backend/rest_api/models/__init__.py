"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and AuditMixin
- tenant: Tenant, User
- table: Table
- order: Order, OrderItem
- catalog: Category, Product
- audit: AuditLog
- outbox: OutboxEvent
"""

from .base import Base, AuditMixin, utcnow
from .tenant import Tenant, User
from .table import Table
from .order import Order, OrderItem
from .catalog import Category, Product
from .audit import AuditLog
from .outbox import OutboxEvent, OutboxStatus

__all__ = [
    "Base",
    "AuditMixin",
    "utcnow",
    "Tenant",
    "User",
    "Table",
    "Order",
    "OrderItem",
    "Category",
    "Product",
    "AuditLog",
    "OutboxEvent",
    "OutboxStatus",
]
