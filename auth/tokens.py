"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username, role, issuer, issued-at and expiry. Symmetric signing
       keeps verification self-contained -- no key distribution for a
       single-process deployment.

  Algorithms: verify() accepts only the HMAC family (HS256/HS384/HS512).
       Anything else, including "none" and the RSA/EC families, is rejected
       before the signature is checked.

  Expiry: enforced here, at verify time, against the service clock. A token
       is invalid at the exact second it expires (now >= exp), not one second
       later. There is no revocation list: a leaked token stays valid until it
       expires.

  Every failure raises InvalidToken. The underlying JWTError is chained for
       logs but never shown to clients.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Claims
from core.errors import InvalidRole, InvalidToken
from records.models import Role, User

logger = logging.getLogger("itemvault.auth")

_ALGORITHM = "HS256"
_ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]

_DECODE_OPTIONS = {
    # Expiry is checked against self._now below so it honours the injected
    # clock and the "at or after" boundary.
    "verify_exp": False,
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
    "require_iss": True,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bounded identity tokens.

    Immutable after construction, so one instance is safely shared by every
    request-handling thread without locking.

    Usage:
        tokens = TokenService(secret, issuer="itemvault-api", expires_in=timedelta(hours=1))
        token = tokens.issue(user)
        claims = tokens.verify(token)   # raises InvalidToken
    """

    def __init__(
        self,
        secret: str,
        issuer: str,
        expires_in: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret cannot be empty.")
        if expires_in < timedelta(0):
            raise ValueError("Token expiry cannot be negative.")
        self._secret = secret
        self.issuer = issuer
        self.expires_in = expires_in
        self._now = clock

    def issue(self, user: User) -> str:
        """Encode a signed JWT for user. iat/exp are whole seconds (NumericDate)."""
        issued_at = int(self._now().timestamp())
        expires_at = issued_at + int(self.expires_in.total_seconds())
        payload = {
            "sub": user.id,
            "user_id": user.id,
            "username": user.username,
            "role": user.role.value,
            "iss": self.issuer,
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Claims:
        """Decode and verify a JWT. Returns its Claims or raises InvalidToken."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=_ACCEPTED_ALGORITHMS,
                issuer=self.issuer,
                options=_DECODE_OPTIONS,
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidToken() from exc

        try:
            user_id = payload["user_id"]
            username = payload["username"]
            role = Role.parse(payload["role"])
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError, InvalidRole) as exc:
            raise InvalidToken("Token is missing required claims.") from exc
        if not isinstance(user_id, str) or not isinstance(username, str):
            raise InvalidToken("Token is missing required claims.")

        if self._now() >= expires_at:
            raise InvalidToken("Token has expired.")

        return Claims(
            user_id=user_id,
            username=username,
            role=role,
            issuer=payload["iss"],
            issued_at=issued_at,
            expires_at=expires_at,
        )
