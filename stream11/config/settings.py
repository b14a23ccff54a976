"""
Application settings using pydantic-settings.

Loads configuration from environment variables (and an optional ``.env``
file) with validation. Names used by the original deployment such as
``MONGO_URL``, ``DB_NAME``, ``SECRET_KEY``, ``FRONTEND_URL`` and
``BACKEND_URL`` are accepted as-is.
"""

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, PrivateAttr, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _random_secret() -> SecretStr:
    return SecretStr(secrets.token_hex(32))


class MongoSettings(BaseSettings):
    """MongoDB connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    db_name: str = Field(
        default="stream11",
        validation_alias=AliasChoices("DB_NAME", "MONGO_DB_NAME"),
        description="Database name",
    )

    # Connection pool settings
    min_pool_size: int = Field(default=1, ge=0, description="Minimum connection pool size")
    max_pool_size: int = Field(default=50, ge=1, description="Maximum connection pool size")

    # Timeouts
    connect_timeout_ms: int = Field(default=5000, ge=100, description="Connection timeout in ms")
    server_selection_timeout_ms: int = Field(
        default=5000, ge=100, description="Server selection timeout in ms"
    )
    socket_timeout_ms: int = Field(default=10000, ge=100, description="Socket I/O timeout in ms")


class TwitchSettings(BaseSettings):
    """Twitch OAuth application credentials and endpoints."""

    model_config = SettingsConfigDict(
        env_prefix="TWITCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    client_id: str = Field(default="", description="Twitch application client id")
    client_secret: SecretStr = Field(
        default=SecretStr(""), description="Twitch application client secret"
    )
    scope: str = Field(default="user:read:email", description="Requested OAuth scopes")
    force_verify: bool = Field(default=True, description="Always show the Twitch consent screen")

    authorize_url: str = "https://id.twitch.tv/oauth2/authorize"
    token_url: str = "https://id.twitch.tv/oauth2/token"
    users_url: str = "https://api.twitch.tv/helix/users"


class SessionSettings(BaseSettings):
    """Session cookie and signing settings."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("SECRET_KEY", "SESSION_SECRET_KEY"),
        description="Key used to sign session tokens",
    )
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    max_age_days: int = Field(default=14, ge=1, description="Session validity window in days")

    cookie_name: str = Field(default="session_token", description="Session cookie name")
    cookie_secure: bool = Field(default=True, description="Send the cookie over HTTPS only")
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite policy of the session cookie"
    )

    _fallback_key: SecretStr = PrivateAttr(default_factory=_random_secret)

    @property
    def uses_fallback_key(self) -> bool:
        """True when no SECRET_KEY was configured."""
        return self.secret_key is None

    @property
    def signing_key(self) -> str:
        """Configured secret, or a random key that lives as long as this object."""
        key = self.secret_key or self._fallback_key
        return key.get_secret_value()

    @computed_field  # type: ignore[misc]
    @property
    def max_age_seconds(self) -> int:
        """Session validity window in seconds."""
        return self.max_age_days * 24 * 60 * 60


class PointsSettings(BaseSettings):
    """Point economy and prediction settings."""

    model_config = SettingsConfigDict(
        env_prefix="POINTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    starting_balance: int = Field(default=1000, ge=0, description="Balance of a new viewer")
    stake_per_vote: int = Field(default=10, ge=1, description="Notional stake of every vote")
    max_duration_minutes: int = Field(
        default=10080, ge=1, le=525600, description="Longest voting window a prediction may have"
    )


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = Field(default="stream11 predictions", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment name",
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    frontend_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("FRONTEND_URL", "APP_FRONTEND_URL"),
        description="Public URL of the front-end",
    )
    backend_url: str = Field(
        default="http://localhost:8001",
        validation_alias=AliasChoices("BACKEND_URL", "APP_BACKEND_URL"),
        description="Public URL of this API",
    )
    api_prefix: str = Field(default="/api", description="Mount point of the API routes")
    http_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for outbound OAuth calls"
    )

    # Pagination defaults
    default_page_size: int = Field(default=20, ge=1, le=100, description="Default page size")
    max_page_size: int = Field(default=100, ge=1, le=1000, description="Maximum page size")

    @computed_field  # type: ignore[misc]
    @property
    def oauth_redirect_uri(self) -> str:
        """Callback URL registered with Twitch."""
        return f"{self.backend_url.rstrip('/')}{self.api_prefix}/auth/callback"

    @computed_field  # type: ignore[misc]
    @property
    def cors_origins(self) -> list[str]:
        """Origins allowed to call the API with credentials."""
        return [self.frontend_url.rstrip("/")]


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mongo: MongoSettings = Field(default_factory=MongoSettings)
    twitch: TwitchSettings = Field(default_factory=TwitchSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    points: PointsSettings = Field(default_factory=PointsSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once, so a generated
    fallback secret stays stable for the lifetime of the process.
    """
    return Settings()
