"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    TableStatus,
    OrderStatus,
    ItemStatus,
    PaymentMethod,
    AuditAction,
    StockReason,
    PlanTier,
    PLAN_LIMITS,
    Limits,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "TableStatus",
    "OrderStatus",
    "ItemStatus",
    "PaymentMethod",
    "AuditAction",
    "StockReason",
    "PlanTier",
    "PLAN_LIMITS",
    "Limits",
]
