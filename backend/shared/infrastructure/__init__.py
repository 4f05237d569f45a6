"""
Infrastructure module: Database, tenant serialization and events.

Provides:
- Database sessions and transactions (db.py)
- Per-tenant FIFO slots for mutations (tenant_locks.py)
- Tenant event bus and Redis relay (events/)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    build_engine,
    get_db,
    get_db_context,
    safe_commit,
)
from shared.infrastructure.tenant_locks import TenantLockRegistry, TenantSlot

__all__ = [
    # db
    "engine",
    "SessionLocal",
    "build_engine",
    "get_db",
    "get_db_context",
    "safe_commit",
    # locks
    "TenantLockRegistry",
    "TenantSlot",
]
