"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cache TTLs are validated at load time so that paged
results always expire well before entity records.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from platform_core.core.constants import CACHE_KEY_MAX_LENGTH


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Every setting has a default so the library can be used without an
    environment (tests, seeding scripts). Validation is limited to the
    cache TTL relationships in validate_cache_ttls.
    """

    # App
    app_name: str = "platform-core"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (SQLAlchemy async URL; sqlite+aiosqlite or postgresql+asyncpg)
    database_url: str = "sqlite+aiosqlite:///./platform_core.db"
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Request context
    actor_header_name: str = "X-Actor-ID"

    # Redis Cache
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    cache_key_max_length: int = CACHE_KEY_MAX_LENGTH
    cache_ttl_default: int = 12 * 60 * 60  # 12 hours
    cache_ttl_paged: int = 2 * 60  # list views go stale quickly
    cache_ttl_relation: int = 2 * 60
    cache_ttl_grants: int = 5 * 60

    # Authorization
    platform_role_prefix: str = "platform_"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_cache_ttls(self) -> "Settings":
        """Validate TTLs and the cache key bound.

        - All TTLs must be positive.
        - Paged-result TTL must be at most a tenth of the default TTL.
        - Key bound must leave room for the hash suffix (sha256 hex + separator).
        """
        for name in (
            "cache_ttl_default",
            "cache_ttl_paged",
            "cache_ttl_relation",
            "cache_ttl_grants",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive number of seconds")
        if self.cache_ttl_paged * 10 > self.cache_ttl_default:
            raise ValueError(
                "CACHE_TTL_PAGED must be materially shorter than CACHE_TTL_DEFAULT "
                f"(got {self.cache_ttl_paged}s vs {self.cache_ttl_default}s)"
            )
        if self.cache_key_max_length < 96:
            raise ValueError("CACHE_KEY_MAX_LENGTH must be at least 96 characters")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
