"""
Retail Transactions Dashboard API - Main Application

This module serves as the entry point for the dashboard API,
configuring the FastAPI application with all routes, middleware,
and exception handlers.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy.exc import OperationalError
import logging
import time

# Import API routers
from retail_dashboard.api.routers import health, transactions

from retail_dashboard.api.middlewares.logging_middleware import RequestLoggingMiddleware
from retail_dashboard.api.middlewares.error_handler import add_exception_handlers
from retail_dashboard.api.utils.documentation import install_custom_openapi
from retail_dashboard.config.settings import settings
from retail_dashboard.db.session import init_db

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage the lifecycle of the application
    """
    # Startup: make sure the tables exist; an unreachable store is reported per request
    try:
        init_db()
    except OperationalError as e:
        logger.error(f"Transaction store unreachable at startup: {str(e)}")

    yield

    logger.info("Shutting down dashboard API")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Filtered, paginated access to retail transactions",
    version=settings.APP_VERSION,
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Add exception handlers
add_exception_handlers(app)

# Include routers
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(transactions.router, prefix=f"{settings.API_PREFIX}/transactions", tags=["Transactions"])

install_custom_openapi(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to responses"""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.time() - start_time:.6f}"
    return response


@app.get(settings.API_PREFIX, tags=["Root"])
async def root():
    """API root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs_url": f"{settings.API_PREFIX}/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "retail_dashboard.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
