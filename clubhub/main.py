from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from clubhub.core.config import settings
from clubhub.core.database import close_db, get_session_local, init_db
from clubhub.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackingStoreError,
    ClubHubError,
    ConcurrentUpdateError,
    DuplicateCheckInError,
    InvalidSessionCodeError,
    ProfileNotFoundError,
    RecordConflictError,
    ResourceNotFoundError,
    ValidationError,
    error_response,
)
from clubhub.core.logging_config import logger
from clubhub.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from clubhub.api.v1.router import api_router
from clubhub.services.read_fallback import FallbackReader, create_read_cache
from clubhub.services.store_capability import StoreCapability


# First match wins, so subclasses come before their bases
ERROR_STATUS_CODES = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ProfileNotFoundError, 404),
    (InvalidSessionCodeError, 404),
    (ResourceNotFoundError, 404),
    (DuplicateCheckInError, 409),
    (RecordConflictError, 409),
    (ConcurrentUpdateError, 409),
    (BackingStoreError, 503),
]


def status_code_for(error: ClubHubError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


HTTP_ERROR_CODES = {
    401: "AUTH_FAILED",
    403: "NOT_AUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def configure_state(app: FastAPI) -> None:
    """Attach the store capability and the two-tier reader to the app"""
    capability = StoreCapability()
    app.state.store_capability = capability
    app.state.fallback_reader = FallbackReader(capability, create_read_cache())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    configure_state(app)
    await init_db()

    async with get_session_local()() as session:
        if not await app.state.store_capability.check(session, force=True):
            logger.warning("[Startup] Data store not ready - writes will be refused until it recovers")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    cache = app.state.fallback_reader.cache
    if cache is not None:
        await cache.close()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Membership, attendance, grading and level progression for a university club",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)
configure_state(app)

# Add middleware (order matters - last added runs first)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


async def clubhub_error_handler(request: Request, exc: ClubHubError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    else:
        logger.info(f"[{exc.code}] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies/params answer 400 in the common error envelope"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    # Drop the "body" / "query" / "path" segment from the location
    loc = [str(part) for part in first.get("loc", ())[1:]]
    error = ValidationError(first.get("msg", "Invalid request"), field=".".join(loc) or None)
    logger.info(f"[{error.code}] {request.method} {request.url.path}: {error.message}")
    return JSONResponse(status_code=400, content=error_response(error))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {
        "success": False,
        "error": {
            "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            "message": str(exc.detail),
            "details": {},
        },
    }
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


app.add_exception_handler(ClubHubError, clubhub_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if settings.DEBUG else "An error occurred",
                "details": {},
            },
        }
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clubhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
