"""
CRUD utilities - Type-safe data access with tenant isolation.
"""

from .repository import TenantRepository

__all__ = [
    "TenantRepository",
]
