"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config.logging import rest_api_logger as logger
from shared.config.logging import setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, engine, get_db_context
from shared.infrastructure.events import RedisEventRelay, create_redis_client
from rest_api.models import Base
from rest_api.seed import seed
from rest_api.services import Ledger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    # Initialize logging
    setup_logging()

    # Validate production secrets before startup
    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )
        else:
            logger.warning(
                "Running with insecure defaults (acceptable for development only)"
            )

    # Startup
    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if settings.seed_demo_data:
        with get_db_context() as db:
            seed(db)

    ledger = Ledger(session_factory=SessionLocal)
    app.state.ledger = ledger

    relay = None
    if settings.redis_events_enabled:
        relay = RedisEventRelay(create_redis_client())
        relay.attach(ledger.publisher)

    yield

    # Shutdown
    logger.info("Shutting down REST API")
    if relay is not None:
        relay.detach()
        logger.info("Redis event relay detached")
