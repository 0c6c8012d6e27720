"""
FastAPI main application for the Bookstore Management API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import APIConfig, config
from api.exceptions import APIError
from api.models import FieldError, HealthResponse, MessageResponse, ValidationErrorResponse
from api.routes import build_api_router
from api.security import PasswordHasher, TokenManager
from storage.database import DatabaseManager

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: APIConfig = app.state.config

    # Startup
    logger.info("Starting Bookstore API", version=settings.api_version)

    database = DatabaseManager(settings.database_url, echo=settings.database_echo)
    try:
        await database.connect()
        await database.create_tables()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise
    app.state.database = database

    yield

    # Shutdown
    logger.info("Shutting down Bookstore API")
    await database.disconnect()


def validation_errors(exc: RequestValidationError) -> ValidationErrorResponse:
    """Flatten pydantic errors into one entry per offending field."""
    errors = []
    for error in exc.errors():
        location = error.get("loc", ())
        source = str(location[0]) if location else "body"
        field = ".".join(str(part) for part in location[1:]) or source
        errors.append(FieldError(
            field=field,
            message=error.get("msg", "Invalid value"),
            type=error.get("type", "value_error"),
            location=source,
            value=jsonable_encoder(error.get("input")) if "input" in error else None,
        ))
    return ValidationErrorResponse(errors=errors)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Reject malformed input before it reaches a handler."""
        body = validation_errors(exc)
        logger.info("Request validation failed", path=request.url.path, errors=len(body.errors))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(body),
        )

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle application errors."""
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=MessageResponse(message=exc.message).model_dump(),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=MessageResponse(message=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=MessageResponse(message=str(exc) or "Internal server error").model_dump(),
        )


def create_app(settings: Optional[APIConfig] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration to use, the environment-backed config by default

    Returns:
        Configured FastAPI application
    """
    settings = settings or config

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        docs_url=settings.docs_url,
        lifespan=lifespan
    )

    app.state.config = settings
    app.state.password_hasher = PasswordHasher(rounds=settings.password_hash_rounds)
    app.state.token_manager = TokenManager(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    # Health check endpoint (no authentication required)
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        database: Optional[DatabaseManager] = getattr(request.app.state, "database", None)
        db_status = "unavailable"
        if database:
            health_info = await database.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=settings.api_version,
            database_status=db_status
        )

    app.include_router(build_api_router())
    return app


# Create FastAPI application
app = create_app()

