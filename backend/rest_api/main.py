"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI

from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.routers.catalog import router as catalog_router
from rest_api.routers.kitchen import router as kitchen_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.query import router as query_router
from rest_api.routers.stock import router as stock_router
from rest_api.routers.tables import router as tables_router
from rest_api.routers.tenant import router as tenant_router
from shared.config.settings import settings
from shared.utils.schemas import ErrorResponse


# Create FastAPI application
app = FastAPI(
    title="Floor Ledger REST API",
    description="Tables, orders and stock of a restaurant floor",
    version="0.1.0",
    lifespan=lifespan,
)

configure_cors(app)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/health")
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


# =============================================================================
# Include Routers
# =============================================================================

# Every ledger error is returned as {"detail": "..."}
ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 404, 409)
}

app.include_router(tables_router, responses=ERROR_RESPONSES)
app.include_router(orders_router, responses=ERROR_RESPONSES)
app.include_router(kitchen_router, responses=ERROR_RESPONSES)
app.include_router(catalog_router, responses=ERROR_RESPONSES)
app.include_router(stock_router, responses=ERROR_RESPONSES)
app.include_router(tenant_router, responses=ERROR_RESPONSES)
app.include_router(query_router, responses=ERROR_RESPONSES)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=True,
    )
