"""Configuration management for OAuth 2.0 clients."""

from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_config import resolve_log_level


class Settings(BaseSettings):
    """Client settings loaded from OAUTH2_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="OAUTH2_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Client identity
    client_id: str | None = Field(default=None, description="OAuth client ID")
    client_secret: str | None = Field(default=None, description="OAuth client secret")

    # Endpoints
    authorization_uri: str | None = Field(
        default=None, description="Authorization endpoint (must be https)"
    )
    token_credential_uri: str | None = Field(default=None, description="Token endpoint")
    redirect_uri: str | None = Field(default=None, description="Registered redirect URI")

    # Authorization request
    scope: str | None = Field(default=None, description="Space-separated scopes to request")

    # Transport
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP request timeout in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional log file path")

    @field_validator("authorization_uri")
    @classmethod
    def validate_authorization_uri(cls, v: str | None) -> str | None:
        """Validate that the authorization endpoint is an HTTPS URL."""
        if v is None:
            return v
        if urlsplit(v).scheme.lower() != "https":
            raise ValueError("Authorization endpoint URL must use https")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a known logging level name."""
        level = v.strip().upper()
        resolve_log_level(level)
        return level

    def client_options(self) -> dict[str, Any]:
        """Credential options for the configured values that are set."""
        options = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "authorization_endpoint_uri": self.authorization_uri,
            "token_credential_uri": self.token_credential_uri,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
        }
        return {key: value for key, value in options.items() if value is not None}

