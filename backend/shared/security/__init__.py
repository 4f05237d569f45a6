"""
Security module: bearer token verification.
"""

from shared.security.auth import (
    verify_jwt,
    get_bearer_token,
    current_user_context,
)

__all__ = [
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
]
