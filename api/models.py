"""
API request and response models for ItemVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in records/models.py,
which own the internal domain representation. Route handlers map between the
two through the from_domain() factory methods below.

Separation of concerns: records/ models = domain truth; api/ models = API contract.
The password hash never appears in any response model.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import Identity
from records.models import Item, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/register. New accounts always get role "user".

    The username is trimmed before the length check; the password is not --
    surrounding spaces are part of it.
    """

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=64)]
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/login."""

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)


class ItemRequest(BaseModel):
    """Request body for POST /api/v1/items and PUT /api/v1/items/{item_id}.

    Blank titles pass this model and are rejected by the store with
    invalid_input, so the rule lives in exactly one place.
    """

    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=5000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: str
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, role=user.role.value, created_at=user.created_at)


class UserListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    users: list[UserResponse]


class LoginResponse(BaseModel):
    """Response for POST /api/v1/login. Send the token back as "Authorization: Bearer <token>"."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class MeResponse(BaseModel):
    """Identity of the caller, taken from the verified token."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "MeResponse":
        return cls(id=identity.id, username=identity.username, role=identity.role.value)


class ItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    owner: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, item: Item) -> "ItemResponse":
        return cls(
            id=item.id,
            title=item.title,
            description=item.description,
            owner=item.owner,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class ItemListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[ItemResponse]


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    timestamp: datetime
