"""
core/config.py -- ItemVault settings, read from the environment once.

Every environment variable the service understands is a field on Settings.
Other modules ask get_settings() for values; none of them reads os.environ.

  Settings (pydantic-settings BaseSettings): field names map to upper-case
      env vars (token_expire_minutes -> TOKEN_EXPIRE_MINUTES). A .env file in
      the working directory is read too; real env vars win over it.

  get_settings(): lru_cache wrapper, so the first call builds Settings and
      later calls share it. Startup is the only time values are read.

  validate_secrets(): with DEBUG=true a missing SECRET_KEY is generated and a
      missing ADMIN_PASSWORD falls back to a well-known dev password. Without
      DEBUG both must be set. A SECRET_KEY under 32 characters is refused in
      either mode, since it is the HMAC key for every token.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or records/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("itemvault.config")

_DEV_ADMIN_PASSWORD = "admin123"  # nosec B105 -- dev-mode bootstrap only


class Settings(BaseSettings):
    """Process configuration. Every field has a default; see validate_secrets()
    for the two that must be supplied outside debug mode."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    jwt_issuer: str = "itemvault-api"
    token_expire_minutes: int = Field(default=60, ge=0)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    admin_username: str = "admin"
    admin_password: str = ""
    seed_welcome_item: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 8080
    # Comma-separated list; "*" allows every origin.
    frontend_origins: str = ""

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    register_rate_limit: str = "5/minute"

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    # bcrypt accepts 4..31; each step doubles the cost.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce SECRET_KEY and ADMIN_PASSWORD policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning and
            fall back to the well-known bootstrap password. Tokens will not
            survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if either
            value is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        if not self.admin_password:
            if self.debug:
                self.admin_password = _DEV_ADMIN_PASSWORD
                logger.warning("Using default ADMIN_PASSWORD. Change it before exposing the service.")
            else:
                raise ValueError("ADMIN_PASSWORD is required in production mode.")
        return self

    def allowed_origins(self) -> list[str]:
        """Return the normalized CORS origin list.

        Entries are trimmed, stripped of trailing slashes, lower-cased and
        de-duplicated in order. A "*" entry short-circuits to ["*"]. The local
        development origins (port 3000 and the API's own port) are always
        appended so the bundled frontend works out of the box.
        """
        origins: list[str] = []
        for part in self.frontend_origins.split(","):
            norm = _normalize_origin(part)
            if not norm:
                continue
            if norm == "*":
                return ["*"]
            if norm not in origins:
                origins.append(norm)

        defaults = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            f"http://localhost:{self.port}",
            f"http://127.0.0.1:{self.port}",
        ]
        for origin in defaults:
            if origin not in origins:
                origins.append(origin)
        return origins


def _normalize_origin(origin: str) -> str:
    return origin.strip().rstrip("/").lower()


@lru_cache
def get_settings() -> Settings:
    """Return the shared Settings instance, building it on first use.

    Tests that need different values construct Settings(...) directly or call
    get_settings.cache_clear().
    """
    return Settings()
