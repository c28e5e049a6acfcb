"""
auth/models.py -- Transient identity dataclasses for authentication.

Pattern: Data class (pure data container, zero logic). Neither type is ever
stored: Claims come out of TokenService.verify(); Identity is what the
authorization gate hands to route handlers for the rest of one request.

Layer rule: no imports from api/. Role comes from records.models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from records.models import Role


@dataclass(frozen=True)
class Claims:
    """The verified contents of an access token."""

    user_id: str
    username: str
    role: Role
    issuer: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of the current request.

    Built from token claims only -- the gate does not re-read the user from the
    store, so a deleted user's token keeps working until it expires.
    """

    id: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_claims(cls, claims: Claims) -> Identity:
        return cls(id=claims.user_id, username=claims.username, role=claims.role)
