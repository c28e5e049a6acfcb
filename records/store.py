"""
records/store.py -- Concurrency-safe in-memory repository for users and items.

Pattern: Repository (same role as the SQL-backed stores it replaces, minus
durability). RecordStore is the single source of truth; route and gate code
never touch the collections directly. Every read returns a copy, so a caller
mutating a returned dataclass cannot change stored state.

Concurrency:
  One reader/writer lock per store instance. Reads (list/get/authenticate
  lookup) share the lock; writes (create/update/delete/bootstrap) hold it
  exclusively. Each operation takes at most one lock scope and never calls
  back into the store while holding it, so there is no deadlock path.

  bcrypt is deliberately slow, so hashing and verification never run while
  the lock is held. create_user hashes first and re-checks uniqueness inside
  the write section; authenticate verifies after releasing the read section.

Validation failures are raised before any mutation, so a failed operation
never leaves partial state behind.

Persistence: none. The store lives exactly as long as the process.

Layer rule: no imports from api/. auth.passwords is the only auth/ import.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone

from auth.passwords import PasswordHasher
from core.errors import (
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    ItemNotFound,
    UserExists,
    UserNotFound,
)
from records.models import Item, Role, User

logger = logging.getLogger("itemvault.records")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _username_key(username: str) -> str:
    return username.strip().lower()


# ---------------------------------------------------------------------------
# Reader/writer lock
# ---------------------------------------------------------------------------


class _ReadWriteLock:
    """Shared/exclusive lock built on a single Condition.

    Writers are preferred: once a writer is waiting, new readers queue behind
    it so a steady stream of reads cannot starve mutations.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RecordStore:
    """Repository for User and Item entities.

    Usage:
        store = RecordStore(hasher=PasswordHasher())
        admin, created = store.ensure_admin_user("admin", "secret")
        item = store.create_item(admin.username, "Title", "")
        store.update_item(item.id, "bob", False, "New", "")  # raises Forbidden
    """

    def __init__(self, hasher: PasswordHasher | None = None, clock: Clock = _utcnow) -> None:
        self._hasher = hasher or PasswordHasher()
        self._now = clock
        self._lock = _ReadWriteLock()
        self._users: dict[str, User] = {}  # keyed by lower-cased username
        self._items: dict[str, Item] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def ensure_admin_user(self, username: str, password: str) -> tuple[User, bool]:
        """Create the bootstrap admin if missing; otherwise make sure it is admin.

        Returns (user, created). Idempotent: repeated calls return the same
        user id with created=False. An existing non-admin account with the
        same name is promoted rather than rejected.
        """
        username = username.strip()
        if not username:
            raise InvalidInput("Admin username cannot be empty.")
        if not password:
            raise InvalidInput("Admin password cannot be empty.")
        key = _username_key(username)

        with self._lock.shared():
            exists = key in self._users
        hashed = None if exists else self._hasher.hash(password)

        while True:
            with self._lock.exclusive():
                existing = self._users.get(key)
                if existing is not None:
                    if existing.role is not Role.ADMIN:
                        existing.role = Role.ADMIN
                        logger.warning("Promoted existing user '%s' to admin", existing.username)
                    return replace(existing), False
                if hashed is not None:
                    user = self._new_user(username, hashed, Role.ADMIN)
                    self._users[key] = user
                    logger.info("Created admin user '%s'", username)
                    return replace(user), True
            # The account was deleted between the two lock scopes.
            hashed = self._hasher.hash(password)

    def create_user(self, username: str, password: str, role: str | Role = Role.USER) -> User:
        """Register a new user and return it.

        Raises InvalidInput for an empty username or password, InvalidRole for
        an unknown role (empty means "user"), UserExists when the username is
        taken in any letter case.
        """
        username = username.strip()
        if not username:
            raise InvalidInput("Username cannot be empty.")
        if not password:
            raise InvalidInput("Password cannot be empty.")
        parsed_role = Role.parse(role, default=Role.USER)
        key = _username_key(username)

        # Cheap pre-check so a duplicate does not pay for a bcrypt round.
        with self._lock.shared():
            if key in self._users:
                raise UserExists()

        hashed = self._hasher.hash(password)

        with self._lock.exclusive():
            if key in self._users:
                raise UserExists()
            user = self._new_user(username, hashed, parsed_role)
            self._users[key] = user

        logger.info("Created user '%s' (role=%s)", username, parsed_role.value)
        return replace(user)

    def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials, else raise InvalidCredentials.

        Always runs bcrypt whether or not the user exists:
        - Unknown username: bcrypt runs against the hasher's dummy hash
        - Wrong password: bcrypt runs against the real hash
        Both paths raise the same error with the same message.
        """
        with self._lock.shared():
            user = self._users.get(_username_key(username))
            user = replace(user) if user is not None else None

        if user is None:
            self._hasher.verify(password, self._hasher.dummy_hash)
            raise InvalidCredentials()
        if not self._hasher.verify(password, user.password_hash):
            raise InvalidCredentials()
        return user

    def list_users(self) -> list[User]:
        """Return all users, oldest first (ties broken by id)."""
        with self._lock.shared():
            users = [replace(u) for u in self._users.values()]
        users.sort(key=lambda u: (u.created_at, u.id))
        return users

    def get_user(self, user_id: str) -> User:
        with self._lock.shared():
            for user in self._users.values():
                if user.id == user_id:
                    return replace(user)
        raise UserNotFound()

    def delete_user(self, user_id: str) -> None:
        """Remove a user. Items they own are left in place (orphaned).

        Callers enforce who may delete whom -- the store does not.
        """
        with self._lock.exclusive():
            for key, user in self._users.items():
                if user.id == user_id:
                    del self._users[key]
                    break
            else:
                raise UserNotFound()
        logger.info("Deleted user '%s'", user.username)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def list_items(self) -> list[Item]:
        """Return all items, oldest first (ties broken by id)."""
        with self._lock.shared():
            items = [replace(i) for i in self._items.values()]
        items.sort(key=lambda i: (i.created_at, i.id))
        return items

    def get_item(self, item_id: str) -> Item:
        with self._lock.shared():
            item = self._items.get(item_id)
            if item is None:
                raise ItemNotFound()
            return replace(item)

    def create_item(self, owner: str, title: str, description: str = "") -> Item:
        """Insert a new item owned by `owner` (trimmed, matching update_item's
        requester check). Raises InvalidInput for a blank title."""
        title = title.strip()
        if not title:
            raise InvalidInput("Title cannot be empty.")

        with self._lock.exclusive():
            now = self._now()
            item = Item(
                id=str(uuid.uuid4()),
                title=title,
                description=(description or "").strip(),
                owner=owner.strip(),
                created_at=now,
                updated_at=now,
            )
            self._items[item.id] = item
        return replace(item)

    def update_item(
        self,
        item_id: str,
        requester: str,
        is_admin: bool,
        title: str,
        description: str = "",
    ) -> Item:
        """Overwrite title and description if requester owns the item or is admin.

        Raises InvalidInput for a blank title, ItemNotFound, or Forbidden. The
        item is untouched on any failure.
        """
        title = title.strip()
        if not title:
            raise InvalidInput("Title cannot be empty.")

        with self._lock.exclusive():
            item = self._items.get(item_id)
            if item is None:
                raise ItemNotFound()
            if item.owner != requester.strip() and not is_admin:
                raise Forbidden("You do not have permission to update this item.")
            item.title = title
            item.description = (description or "").strip()
            item.updated_at = self._now()
            return replace(item)

    def delete_item(self, item_id: str) -> None:
        """Remove an item unconditionally. Authorization is the caller's job.

        Not idempotent: deleting an already-deleted id raises ItemNotFound.
        """
        with self._lock.exclusive():
            if self._items.pop(item_id, None) is None:
                raise ItemNotFound()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _new_user(self, username: str, password_hash: str, role: Role) -> User:
        return User(
            id=str(uuid.uuid4()),
            username=username,
            password_hash=password_hash,
            role=role,
            created_at=self._now(),
        )
