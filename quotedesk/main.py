"""
QuoteDesk API - Main Application

SECURITY FEATURES:
- Conditional API docs (disabled in production by default)
- Structured logging without sensitive data
- RFC 7807 error responses without internals outside DEBUG
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from quotedesk.api.v2.router import api_router
from quotedesk.api.public.router import public_router
from quotedesk.config import settings
from quotedesk.core.sentry import init_sentry
from quotedesk.database import init_db
from quotedesk.exceptions import register_exception_handlers
from quotedesk.middleware import CorrelationIdMiddleware, CorrelationLogFilter
# Import all models to register them with SQLAlchemy metadata before init_db()
import quotedesk.models  # noqa: F401

# Configure secure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s",
)
for handler in logging.getLogger().handlers:
    handler.addFilter(CorrelationLogFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting QuoteDesk API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    init_sentry()
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # SECURITY: Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - requests will fail until it is reachable")
    yield
    logger.info("Shutting down QuoteDesk API...")


docs_url = "/docs" if settings.docs_enabled else None
redoc_url = "/redoc" if settings.docs_enabled else None

app = FastAPI(
    title="QuoteDesk API",
    description="Quotes, invoices and client dossiers for small service businesses",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

register_exception_handlers(app)

# CORS middleware
allowed_origins = [settings.FRONTEND_URL, settings.PUBLIC_BASE_URL]
if not settings.is_production:
    allowed_origins.extend([
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(set(allowed_origins)),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)
app.add_middleware(CorrelationIdMiddleware)

# Include routers
app.include_router(api_router, prefix="/api/v2")
app.include_router(public_router, prefix="/api/public")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "QuoteDesk API",
        "version": "1.0.0",
        "health": "/health",
    }
    if settings.docs_enabled:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quotedesk.main:app",
        host="0.0.0.0",
        port=5001,
        reload=settings.DEBUG,
    )
