"""
Centralized ledger exceptions for consistent error handling.

Every rejected ledger call raises one of these synchronously. They extend
HTTPException so the REST layer maps them to status codes without extra
handlers, and they log themselves with structured context.

Usage:
    from shared.utils.exceptions import NotFoundError, ConflictError, ValidationError

    raise NotFoundError("Mesa", table_id, tenant_id=tenant_id)
    raise ConflictError("La mesa ya tiene una comanda abierta", table_id=table_id)
    raise ValidationError("No se puede cobrar una comanda sin productos")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All ledger exceptions inherit from this class to ensure consistent
    logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.context = log_context

    def __str__(self) -> str:
        return str(self.detail)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found in the caller's tenant (404).

    Ids that exist in another tenant are reported exactly the same way.

    Usage:
        raise NotFoundError("Producto", 123)
        raise NotFoundError("Mesa", table_id, tenant_id=tenant_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} con ID {entity_id} no encontrado"
        else:
            detail = f"{entity} no encontrado"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )
        self.entity = entity
        self.entity_id = entity_id


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Request violates a structural invariant (400).

    Usage:
        raise ValidationError("El motivo del ajuste es obligatorio")
        raise ValidationError("Cantidad inválida", field="qty", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **log_context,
        )


class PlanLimitError(ValidationError):
    """Tenant reached the limit of its subscription plan."""

    def __init__(self, resource: str, limit: int, **log_context: Any):
        super().__init__(
            f"Tu plan permite hasta {limit} {resource}",
            resource=resource,
            limit=limit,
            **log_context,
        )


class DuplicateEntityError(ValidationError):
    """Entity already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} con identificador '{identifier}' ya existe"
        else:
            detail = f"{entity} ya existe"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Requested transition is incompatible with the current state (409).
    Callers must re-fetch before retrying.

    Usage:
        raise ConflictError("La mesa ya tiene una comanda abierta")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **log_context,
        )


class InvalidTransitionError(ConflictError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Transición inválida de '{from_status}' a '{to_status}' para {entity}"
        super().__init__(
            detail, entity=entity, from_status=from_status, to_status=to_status, **log_context
        )
        self.from_status = from_status
        self.to_status = to_status


class OrderAlreadyPaidError(ConflictError):
    """Order is closed and can no longer change."""

    def __init__(self, order_id: int, **log_context: Any):
        super().__init__(
            f"La comanda {order_id} ya está pagada", order_id=order_id, **log_context
        )
        self.order_id = order_id


# =============================================================================
# Stock Errors
# =============================================================================


class InsufficientStockError(AppException):
    """
    A stock-enabled product cannot satisfy the requested decrement (409).
    Callers may adjust stock and retry.
    """

    def __init__(self, product_id: int, available: int, requested: int, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Stock insuficiente para el producto {product_id}: "
                f"disponible {available}, solicitado {requested}"
            ),
            product_id=product_id,
            available=available,
            requested=requested,
            **log_context,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


# =============================================================================
# 401 Unauthorized
# =============================================================================


class AuthenticationError(AppException):
    """Missing or invalid bearer token (401)."""

    def __init__(self, detail: str = "Token inválido o ausente", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )
