# ABOUTME: Base configuration classes for the cascade kernel
# ABOUTME: Provides application options loaded from environment variables or .env files

from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BaseCoreSettings(BaseSettings):
    """Defines the foundational configuration for a cascade application.

    Settings are loaded by `pydantic-settings` from `CASCADE_`-prefixed
    environment variables or a `.env` file. Arguments passed explicitly to
    `Application(...)` take precedence over anything loaded here.

    Attributes:
        APP_NAME: Name used to identify the application in logs.
        ENV: Runtime environment. Common aliases are normalized, any other
            value is kept verbatim so custom environments remain possible.
        DEBUG: Enables debug behaviour such as verbose logging.
        LOG_LEVEL: The minimum level for log messages to be processed.
        LOG_FORMAT: Structured (json) or human-readable (txt) log output.
        PROXY: Trust proxy headers when deriving the client address and host.
        SUBDOMAIN_OFFSET: Number of trailing host labels ignored by `request.subdomains`.
        PROXY_IP_HEADER: Header carrying the forwarded client address chain.
        MAX_IPS_COUNT: Maximum number of addresses read from the proxy header (0 means unlimited).
        KEYS: Signing keys handed through to cookie middleware.
        SILENT: Suppress the default error reporter.
        ASYNC_LOCAL_STORAGE: Enable per-request context lookup via `Application.current_context`.
    """

    # Application Identity
    APP_NAME: str = Field(
        default="cascade",
        description="The name of the application, used for identification in logs.",
    )

    # Environment Configuration
    ENV: str = Field(
        default="development",
        description="The application's runtime environment.",
    )
    DEBUG: bool = Field(default=False, description="Flag to enable or disable debug mode.")

    # Logging Configuration
    LOG_LEVEL: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="The minimum level for log messages to be processed.",
    )
    LOG_FORMAT: Literal["json", "txt"] = Field(
        default="txt",
        description="The output format for logs. Use 'json' for production environments.",
    )

    # Request handling
    PROXY: bool = Field(default=False, description="Trust X-Forwarded-* headers.")
    SUBDOMAIN_OFFSET: int = Field(default=2, ge=0, description="Host labels ignored by request.subdomains.")
    PROXY_IP_HEADER: str = Field(default="X-Forwarded-For", description="Header holding the proxied client chain.")
    MAX_IPS_COUNT: int = Field(default=0, ge=0, description="Max addresses read from the proxy header, 0 is unlimited.")
    KEYS: Annotated[Optional[List[str]], NoDecode] = Field(default=None, description="Signing keys for cookie middleware.")

    # Error reporting and context propagation
    SILENT: bool = Field(default=False, description="Suppress the default error reporter.")
    ASYNC_LOCAL_STORAGE: bool = Field(default=False, description="Enable Application.current_context lookups.")

    model_config = SettingsConfigDict(
        env_prefix="CASCADE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("ENV", mode="before")
    @classmethod
    def validate_env_aliases(cls, v: str) -> str:
        """Normalize common environment aliases.

        - dev, develop -> development
        - prod -> production
        - stage -> staging

        An empty value falls back to development.
        """
        if isinstance(v, str):
            v_stripped = v.strip()
            if not v_stripped:
                return "development"
            env_mapping = {
                "dev": "development",
                "develop": "development",
                "development": "development",
                "stage": "staging",
                "staging": "staging",
                "prod": "production",
                "production": "production",
            }
            return env_mapping.get(v_stripped.lower(), v_stripped)
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level_case_insensitive(cls, v: str) -> str:
        """Validate LOG_LEVEL field with case-insensitive normalization."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def validate_log_format_case_insensitive(cls, v: str) -> str:
        """Validate LOG_FORMAT field with case-insensitive normalization."""
        if isinstance(v, str):
            v_lower = v.lower().strip()
            format_mapping = {
                "json": "json",
                "structured": "json",
                "txt": "txt",
                "text": "txt",
            }
            return format_mapping.get(v_lower, v_lower)
        return v

    @field_validator("KEYS", mode="before")
    @classmethod
    def split_keys(cls, v):
        """Accept a comma separated string for KEYS."""
        if isinstance(v, str):
            return [key.strip() for key in v.split(",") if key.strip()]
        return v
