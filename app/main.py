"""
FastAPI Application - Channel Accounts API
User accounts, JWT sessions and channel profiles
"""

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.database import close_db, init_db
from app.core.errors import AppError
from app.core.json_response import UTCJSONResponse
from app.core.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)
from app.schemas.common import error_response

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown events"""
    configure_logging()
    logger.info(
        "app_starting",
        environment=settings.ENVIRONMENT,
        database=settings.DATABASE_URL.split("@")[-1],
    )
    app.state.db_ready = await init_db()
    yield
    await close_db()
    logger.info("app_stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="User accounts, JWT sessions and channel profiles",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    default_response_class=UTCJSONResponse,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with its request ID."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    set_request_context(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Request-ID"] = request_id
    return response


# Error translation: every failure leaves as the JSON envelope


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> Response:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": str(error.get("msg", "")),
        }
        for error in exc.errors()
    ]
    message = errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message, errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    logger.exception("unhandled_error", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - API information"""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health(request: Request) -> dict[str, str]:
    """Health check endpoint; reports a degraded state when the database is unavailable"""
    db_ready = getattr(request.app.state, "db_ready", False)
    return {"status": "healthy" if db_ready else "degraded"}


# Import and include routers
from app.api.v1 import router as api_v1_router  # noqa: E402

app.include_router(api_v1_router, prefix=settings.API_V1_STR)
