"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    ConflictError,
    InsufficientStockError,
)
from shared.utils.validators import (
    validate_image_url,
    escape_like_pattern,
    sanitize_search_term,
)
from shared.utils.schemas import ErrorResponse, QueryFilter

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "InsufficientStockError",
    # validators
    "validate_image_url",
    "escape_like_pattern",
    "sanitize_search_term",
    # schemas
    "ErrorResponse",
    "QueryFilter",
]
