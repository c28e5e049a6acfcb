"""
api/main.py -- FastAPI application entry point for ItemVault.

Exposes the record store and the auth layer over HTTP.

Run with:      python main.py
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Lifespan builds the explicitly owned services (RecordStore, TokenService,
AuthorizationGate), bootstraps the admin account and seeds the welcome item.
Nothing is persisted: a restart starts from an empty store plus bootstrap.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.items import router as items_router
from api.routes.v1.users import router as users_router
from auth.dependencies import AuthorizationGate
from auth.passwords import PasswordHasher
from auth.tokens import TokenService
from core.config import Settings, get_settings
from core.errors import (
    Forbidden,
    HashingFailure,
    InvalidCredentials,
    InvalidInput,
    InvalidRole,
    InvalidToken,
    ItemNotFound,
    ItemVaultError,
    Unauthenticated,
    UserExists,
    UserNotFound,
)
from records.store import RecordStore

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("itemvault.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def build_services(settings: Settings) -> tuple[RecordStore, TokenService, AuthorizationGate]:
    """Construct the store, token service and gate from settings.

    Each call returns fresh, independent instances -- there is no module-level
    store. The caller owns them for the lifetime of the app.
    """
    store = RecordStore(hasher=PasswordHasher(rounds=settings.bcrypt_rounds))
    tokens = TokenService(
        settings.secret_key,
        issuer=settings.jwt_issuer,
        expires_in=timedelta(minutes=settings.token_expire_minutes),
    )
    return store, tokens, AuthorizationGate(tokens)


def bootstrap(store: RecordStore, settings: Settings) -> None:
    """Ensure the admin account exists and optionally seed a welcome item.

    A failure to create the admin aborts startup; a failure to seed the
    welcome item is only logged.
    """
    admin, created = store.ensure_admin_user(settings.admin_username, settings.admin_password)
    if created:
        logger.info("Created default admin user '%s'", admin.username)
    else:
        logger.info("Admin user '%s' already exists", admin.username)

    if settings.seed_welcome_item:
        try:
            store.create_item(
                admin.username,
                "Welcome Item",
                "You can edit or delete this item from the web app.",
            )
        except ItemVaultError:
            logger.warning("Failed to seed welcome item", exc_info=True)


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level services across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The store is in-memory, so shutdown has nothing to flush.
    """
    logger.info("ItemVault API starting up")
    store, tokens, gate = build_services(_settings)
    bootstrap(store, _settings)
    app.state.store = store
    app.state.tokens = tokens
    app.state.gate = gate
    logger.info("Auth initialized (issuer=%s, expiry=%s)", tokens.issuer, tokens.expires_in)

    yield

    logger.info("ItemVault API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ItemVault API",
    description="Multi-tenant item records with token-based, role-gated access.",
    version=_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["Authorization"],
    max_age=12 * 3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time around call_next gives the latency per response.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(items_router, prefix="/api/v1", tags=["Items"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])

# ---------------------------------------------------------------------------
# Exception handlers
#
# Every failure leaves the API as {"error": {"code", "message", "detail"?}}.
# Core errors carry their own code; the status for each code is decided here.
# ---------------------------------------------------------------------------

_ERROR_STATUS: dict[type[ItemVaultError], int] = {
    InvalidInput: 400,
    InvalidRole: 400,
    UserExists: 409,
    InvalidCredentials: 401,
    Unauthenticated: 401,
    InvalidToken: 401,
    Forbidden: 403,
    UserNotFound: 404,
    ItemNotFound: 404,
    HashingFailure: 500,
}


def _status_for(exc: ItemVaultError) -> int:
    for cls in type(exc).__mro__:
        if cls in _ERROR_STATUS:
            return _ERROR_STATUS[cls]
    return 500


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(ItemVaultError)
async def itemvault_error_handler(request: Request, exc: ItemVaultError) -> JSONResponse:
    """Map a core error kind to its HTTP status."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path, exc_info=exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return _error_response(status_code, exc.code, exc.message, headers=headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    client = request.client.host if request.client else "unknown"
    logger.warning("Rate limit hit on %s from %s", request.url.path, client)
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error_response(
        429,
        "rate_limited",
        "Too many requests.",
        detail=str(exc),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(422, "validation_error", "Request validation failed.", detail=str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException raised by dependencies, routes and the router itself.

    Registered for the Starlette base class so routing 404/405 responses get
    the envelope too; FastAPI's HTTPException is a subclass.

    The auth dependencies and the users router pass a {"code", "message"}
    dict as detail; it is used as-is. Anything else gets an http_<status> code.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort. The traceback is logged; the client only sees internal_error."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Public and unlimited. Lives on the app itself, outside the v1 routers.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness, version and server time."""
    return HealthResponse(version=_VERSION, timestamp=datetime.now(timezone.utc))
