"""
api/routes/v1/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /api/v1/register   -- create a "user" account (public, rate limited)
  POST /api/v1/login      -- password login; returns a bearer JWT (public, rate limited)
  GET  /api/v1/auth/me    -- identity carried by the presented token (requires auth)

Security:
  POST /login and POST /register are rate-limited per client IP.
  RecordStore.authenticate() equalizes timing between unknown usernames and
      wrong passwords -- use it, never inline a lookup + verify.
  Unknown username and wrong password return the same 401 body.
  Cache-Control: no-store on login responses so tokens are never cached.
  @limiter.limit goes BELOW @router.post: the router must register the
      wrapped function, or the limit is never checked.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import InvalidCredentials
from records.models import Role
from records.store import RecordStore

logger = logging.getLogger("itemvault.api")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/register:  public -- self-service signup, role forced to "user"
# - POST /api/v1/login:     public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:   requires auth (get_current_identity)
router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
@limiter.limit(_settings.register_rate_limit)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a new account with role "user".

    409 user_exists when the username is taken in any letter case. The role
    is not accepted from the body -- admins are only created by bootstrap.
    """
    store: RecordStore = request.app.state.store
    user = store.create_user(body.username, body.password, Role.USER)
    return UserResponse.from_domain(user)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed access token.

    Returns the same generic error for wrong username and wrong password to
    avoid leaking username existence information.
    """
    store: RecordStore = request.app.state.store
    tokens: TokenService = request.app.state.tokens
    try:
        user = store.authenticate(body.username, body.password)
    except InvalidCredentials as exc:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": exc.code, "message": exc.message}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = tokens.issue(user)
    logger.info("User '%s' logged in", user.username)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            expires_in=int(tokens.expires_in.total_seconds()),
            user=UserResponse.from_domain(user),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity carried by the caller's token."""
    return MeResponse.from_identity(identity)
