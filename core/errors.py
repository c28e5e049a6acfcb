"""
core/errors.py -- Error taxonomy shared by every ItemVault layer.

Each failure kind the store, token service, or authorization gate can produce
is a distinct exception class. Callers distinguish them with `except` clauses
(or isinstance checks) rather than by parsing messages.

`code` is the machine-readable identifier that api/main.py places in the
error envelope; `message` is the human-readable default. The HTTP status for
each code lives in the API layer, not here -- core/ knows nothing about HTTP.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or records/.
"""

from __future__ import annotations


class ItemVaultError(Exception):
    """Base class for every expected failure raised by ItemVault."""

    code: str = "error"
    message: str = "Operation failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class InvalidInput(ItemVaultError):
    """A required field is empty or malformed."""

    code = "invalid_input"
    message = "Invalid input."


class UserExists(ItemVaultError):
    code = "user_exists"
    message = "Username already taken."


class InvalidRole(ItemVaultError):
    code = "invalid_role"
    message = "Invalid role."


class InvalidCredentials(ItemVaultError):
    """Login failure. Unknown username and wrong password share this error."""

    code = "invalid_credentials"
    message = "Invalid username or password."


class UserNotFound(ItemVaultError):
    code = "user_not_found"
    message = "User not found."


class ItemNotFound(ItemVaultError):
    code = "item_not_found"
    message = "Item not found."


class Forbidden(ItemVaultError):
    """Authenticated, but not permitted to perform the operation."""

    code = "forbidden"
    message = "Insufficient permissions."


class Unauthenticated(ItemVaultError):
    """No credential, a malformed credential, or one that failed verification."""

    code = "unauthenticated"
    message = "Authentication required."


class InvalidToken(ItemVaultError):
    """Bad signature, unexpected algorithm, malformed structure, or expired."""

    code = "invalid_token"
    message = "Invalid or expired token."


class HashingFailure(ItemVaultError):
    """The password hashing primitive failed. Fatal for the current request only."""

    code = "hashing_failure"
    message = "Failed to hash password."
