"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for PawConnect happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. api_url -> API_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. A malformed API_URL is a hard startup
      failure rather than a confusing connection error on the first login.

Layer rule: core/ is the kernel. This module may not import from auth/ or web/.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("pawconnect.config")

DEFAULT_API_URL = "http://localhost:5000/api"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Auth API (external collaborator)
    # ------------------------------------------------------------------

    api_url: str = DEFAULT_API_URL
    # None leaves the timeout to the transport. requests itself waits
    # indefinitely; deployments that need a bound set API_TIMEOUT.
    api_timeout: Optional[float] = None

    # ------------------------------------------------------------------
    # Local storage
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "use the file beside auth/storage.py".
    storage_url: str = ""

    # ------------------------------------------------------------------
    # Web shell
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_api_url(self) -> "Settings":
        """Normalize API_URL and reject values that are not http(s) URLs.

        The trailing slash is stripped so endpoint paths can always be joined
        as f"{api_url}/auth/login".
        """
        url = self.api_url.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"API_URL must be an http:// or https:// URL, got {self.api_url!r}.")
        self.api_url = url
        if self.api_timeout is not None and self.api_timeout <= 0:
            raise ValueError("API_TIMEOUT must be a positive number of seconds.")
        if self.debug and url == DEFAULT_API_URL:
            logger.info("Using local development Auth API at %s", url)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
