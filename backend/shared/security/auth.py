"""
Authentication utilities.

Bearer JWTs are issued by the external auth service; this module only
verifies them. The token's tenant_id claim scopes every ledger call and
its sub claim is the acting user.
"""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Header

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import AuthenticationError

logger = get_logger(__name__)


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Access tokens must carry `sub` (user id as integer string) and an
    integer `tenant_id`.

    Returns:
        Decoded token claims.

    Raises:
        AuthenticationError: If token is invalid, expired or misses claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expirado")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message to the client
        raise AuthenticationError("Token inválido", error=str(e))

    if "sub" not in payload or "tenant_id" not in payload:
        raise AuthenticationError("Token inválido: faltan claims obligatorios")

    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise AuthenticationError("Token inválido: sub mal formado")

    if not isinstance(payload["tenant_id"], int) or isinstance(payload["tenant_id"], bool):
        raise AuthenticationError("Token inválido: tenant_id mal formado")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        AuthenticationError: If header is missing or malformed.
    """
    if not authorization:
        raise AuthenticationError("Falta el header Authorization")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Formato de Authorization inválido. Esperado: Bearer <token>")
    return token.strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/tables")
        def list_tables(ctx: dict = Depends(current_user_context)):
            tenant_id = ctx["tenant_id"]
            user_id = ctx["user_id"]

    Returns:
        Token claims plus user_id (int).
    """
    payload = verify_jwt(get_bearer_token(authorization))
    return {**payload, "user_id": int(payload["sub"])}
