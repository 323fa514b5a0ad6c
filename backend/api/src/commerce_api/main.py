"""FastAPI application for the checkout REST API.

This package provides endpoints for:
- Health checks
- Event registration and product checkout
- Stripe webhooks
- Checkout success page and session verification
- Order status lookup
"""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from commerce.utils.logging import configure_logging, get_logger
from commerce_api import __version__
from commerce_api.exceptions import register_exception_handlers
from commerce_api.middleware.correlation import CorrelationIdMiddleware
from commerce_api.routes.checkout import router as checkout_router
from commerce_api.routes.health import router as health_router
from commerce_api.routes.orders import router as orders_router
from commerce_api.routes.success import page_router as success_page_router
from commerce_api.routes.success import router as session_router
from commerce_api.routes.webhooks import router as webhooks_router

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app = FastAPI(
    title="Commerce Checkout API",
    description="REST API for event registrations, merchandise checkout and Stripe webhooks",
    version=__version__,
)

# Configure CORS for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
app.include_router(health_router, prefix="/api")
app.include_router(checkout_router, prefix="/api")
app.include_router(session_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
# Stripe success_url points here
app.include_router(success_page_router)


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "commerce-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "commerce_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
