"""Application settings and configuration.

This module defines all configuration options for deskchat: the reference
message store service and the polling sync engine that talks to it.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="deskchat", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="deskchat-dev-secret", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./deskchat.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Message store client used by the sync engine
    store_base_url: str = Field(
        default="http://localhost:8000/api/v1",
        alias="STORE_BASE_URL",
    )
    store_api_token: str | None = Field(default=None, alias="STORE_API_TOKEN")
    store_http_timeout_seconds: float = Field(
        default=10.0,
        alias="STORE_HTTP_TIMEOUT_SECONDS",
    )

    # Polling cadences (seconds). The cadence is constant; failures do not back off.
    chat_poll_interval_seconds: float = Field(
        default=2.0,
        alias="CHAT_POLL_INTERVAL_SECONDS",
    )
    unread_poll_interval_seconds: float = Field(
        default=30.0,
        alias="UNREAD_POLL_INTERVAL_SECONDS",
    )
    # 0 disables the background conversation list refresh
    conversation_refresh_interval_seconds: float = Field(
        default=30.0,
        alias="CONVERSATION_REFRESH_INTERVAL_SECONDS",
    )
    mark_read_on_view: bool = Field(default=True, alias="MARK_READ_ON_VIEW")

    # Query limits for the store
    messages_page_limit: int = Field(default=200, alias="MESSAGES_PAGE_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
