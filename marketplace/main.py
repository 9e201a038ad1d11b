"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from marketplace.config import settings
from marketplace.database import create_tables, check_db_connection, close_db_connection
from marketplace.routers import auth_router, properties_router, upload_router
from marketplace.utils.exceptions import APIException
from marketplace.utils.storage import get_storage
from marketplace.services.error_handler import ErrorHandlerService
from marketplace.middleware import ValidationMiddleware

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    await create_tables()

    if get_storage().available:
        logger.info(f"Image storage: S3 bucket {settings.aws_s3_bucket}")
    else:
        logger.warning("Image storage is not configured; uploads will be rejected")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    REST API for a real-estate marketplace.

    ## Features

    * **Accounts**: Registration, login and profiles for buyers and sellers
    * **Listings**: Seller-owned property listings with search, filters and sorting
    * **Nearby search**: Listings within a radius of a point, nearest first
    * **Images**: Image upload to object storage
    * **Favorites**: Per-user saved listings

    ## Authentication

    Use `/api/auth/login` to obtain a JWT token, then send it in the
    Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Accounts, profiles and favorites"
        },
        {
            "name": "Properties",
            "description": "Property listing management and search operations"
        },
        {
            "name": "Uploads",
            "description": "Image upload to object storage"
        },
        {
            "name": "Health",
            "description": "Service health endpoints"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(
    ValidationMiddleware,
    max_request_size=settings.max_request_size,
    enable_request_logging=not settings.is_testing
)

# Include API routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(properties_router, prefix=settings.api_prefix)
app.include_router(upload_router, prefix=settings.api_prefix)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with field information."""
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle framework HTTP exceptions such as unknown routes."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    db_healthy = await check_db_connection()
    if not db_healthy:
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "storage": "configured" if get_storage().available else "not configured"
    }


def run():
    """Serve the API with uvicorn."""
    import uvicorn
    uvicorn.run(
        "marketplace.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
