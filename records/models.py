"""
records/models.py -- Domain dataclasses for the ItemVault record store.

Pattern: Data class (pure data container, near-zero logic). All business
rules (uniqueness, ownership, ordering) live in records/store.py.

Role is the one exception: parsing a role string is a boundary concern shared
by the store, the token service and the authorization gate, so it lives next
to the type it produces.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from core.errors import InvalidRole


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | Role | None, *, default: Role | None = None) -> Role:
        """Parse a role case-insensitively.

        An empty value returns `default` when one is given. Anything that is
        not a known role raises InvalidRole.
        """
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        if not normalized and default is not None:
            return default
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidRole(f"Invalid role: {value!r}.") from exc


@dataclass
class User:
    """A registered account.

    username keeps the casing it was registered with; uniqueness is enforced
    on the lower-cased form by the store.
    """

    id: str
    username: str
    password_hash: str
    role: Role
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class Item:
    """A record owned by the user who created it.

    owner is the creator's username. It is not re-validated after the user is
    deleted -- orphaned items stay readable and admin-editable.
    """

    id: str
    title: str
    description: str
    owner: str
    created_at: datetime
    updated_at: datetime
