"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for socialauth happen here. No module should
call os.getenv() or os.environ.get() directly -- build a Settings instance
with load_settings() at process startup and pass it down.

Design patterns used:
  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret_key -> JWT_SECRET_KEY). Type coercion and validation
      are built in.

  Explicit construction, no singleton: load_settings() returns a fresh
      instance. The app factory (api.main.create_app) and the CLI each build
      one at startup and hand derived objects to the components that need
      them. Tests construct Settings(...) directly with keyword overrides.

Security notes:
  There is no default signing secret. An empty JWT_SECRET_KEY is carried
  through as "" and rejected by auth.config.AuthConfig, which raises
  SigningConfigurationError so the process refuses to start.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("socialauth.config")

_DEFAULT_TTL_SECONDS = 72 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_secret_key has a usable default, so a development
    instance only needs JWT_SECRET_KEY set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". AuthConfig turns it
    # into a startup failure.
    jwt_secret_key: str = ""
    token_ttl_seconds: int = _DEFAULT_TTL_SECONDS
    # bcrypt cost factor; each +1 doubles the work per guess.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///socialauth.db"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = []

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    log_level: str = "INFO"


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment, applying keyword overrides on top."""
    settings = Settings(**overrides)
    logger.debug("Settings loaded (database_url=%s)", settings.database_url)
    return settings
