"""
auth/dependencies.py -- Authorization gate and FastAPI Depends() helpers.

AuthorizationGate is the framework-free core:
  authenticate_request() turns an Authorization header value into an Identity
      or raises Unauthenticated. A missing header, a header that is not
      "Bearer <token>", and a token that fails verification are all the same
      error kind -- callers cannot tell them apart.
  require_role() raises Unauthenticated without an identity and Forbidden when
      the identity's role is not in the allowed set.

The FastAPI helpers below wrap the gate stored on app.state and translate its
errors into HTTP 401 / 403. Handlers receive the Identity as an explicit
parameter instead of reading it back out of an untyped request context:

    @router.get("/items")
    def route(identity: Identity = Depends(get_current_identity)): ...

    @router.delete("/items/{item_id}")
    def route(identity: Identity = Depends(require_admin)): ...

Layer rule: no imports from api/. auth/dependencies.py may import from fastapi
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from fastapi import Depends, HTTPException, Request

from auth.models import Identity
from auth.tokens import TokenService
from core.errors import Forbidden, InvalidRole, InvalidToken, Unauthenticated
from records.models import Role


class AuthorizationGate:
    """Derives an Identity from a bearer credential and enforces role requirements.

    Stateless apart from the TokenService it wraps; nothing carries over from
    one request to the next.
    """

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens

    def authenticate_request(self, authorization: str | None) -> Identity:
        """Verify an "Authorization: Bearer <token>" header value and return its Identity."""
        header = (authorization or "").strip()
        if not header:
            raise Unauthenticated("Authorization header required.")

        scheme, _, token = header.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise Unauthenticated("Authorization header must be in the format 'Bearer <token>'.")

        try:
            claims = self._tokens.verify(token)
        except InvalidToken as exc:
            raise Unauthenticated("Invalid or expired token.") from exc
        return Identity.from_claims(claims)

    def require_role(self, identity: Identity | None, allowed_roles: Iterable[Role | str]) -> Identity:
        """Return identity if its role is allowed; raise Unauthenticated / Forbidden otherwise."""
        if identity is None:
            raise Unauthenticated()
        if identity.role not in _parse_roles(allowed_roles):
            raise Forbidden()
        return identity


def _parse_roles(roles: Iterable[Role | str]) -> set[Role]:
    """Parse configured role names case-insensitively. Unknown names match nobody."""
    parsed: set[Role] = set()
    for role in roles:
        try:
            parsed.add(Role.parse(role))
        except InvalidRole:
            continue
    return parsed


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated."""
    gate: AuthorizationGate = request.app.state.gate
    try:
        return gate.authenticate_request(request.headers.get("Authorization"))
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=401,
            detail={"code": exc.code, "message": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_roles(*roles: Role | str) -> Callable[..., Identity]:
    """Build a dependency that requires one of `roles`. HTTP 401 / 403 on failure."""
    allowed = _parse_roles(roles)

    def dependency(request: Request, identity: Identity = Depends(get_current_identity)) -> Identity:
        gate: AuthorizationGate = request.app.state.gate
        try:
            return gate.require_role(identity, allowed)
        except Forbidden as exc:
            raise HTTPException(
                status_code=403,
                detail={"code": exc.code, "message": exc.message},
            ) from exc

    return dependency


require_admin = require_roles(Role.ADMIN)
