"""
Shared module for common utilities of the REST API.

CLEAN ARCHITECTURE STRUCTURE:
- shared.security: Authentication
  - auth.py: JWT verification, current_user_context

- shared.infrastructure: Database, serialization and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - tenant_locks.py: Per-tenant FIFO slots for mutations
  - events/: Tenant event bus and Redis relay

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Statuses, plan limits, validation limits

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Input validation, SSRF prevention, LIKE escaping
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import TableStatus, ItemStatus
    from shared.utils.exceptions import NotFoundError, ConflictError
    from shared.utils.validators import validate_image_url
"""
