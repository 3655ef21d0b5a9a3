"""Setup app configuration using pydantic-settings.

This module defines the SetupSettings class that reads configuration from
environment variables (and a ``.env`` file when present). Missing or
invalid required values abort startup with a ConfigurationError.

Two GitHub Apps are involved:
- The setup App (GITHUB_APP_ID / GITHUB_PRIVATE_KEY) receives the webhook
  and performs all API calls.
- The label App (LABEL_APP_ID / LABEL_PRIVATE_KEY) is what the pushed
  workflow authenticates as; its credentials are stored in the new
  repository as the APP_ID and APP_PRIVATE_KEY secrets.
"""

import base64
import binascii

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Secret names the setup-labels workflow reads
APP_ID_SECRET = "APP_ID"
APP_PRIVATE_KEY_SECRET = "APP_PRIVATE_KEY"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def normalize_private_key(value: str) -> str:
    """Normalize a PEM private key supplied through the environment.

    Accepts raw PEM (with real or escaped ``\\n`` line breaks, LF or CRLF)
    or base64-encoded PEM.

    Args:
        value: The raw environment value.

    Returns:
        PEM text with LF line breaks.

    Raises:
        ValueError: If the value is neither PEM nor base64-encoded PEM.
    """
    text = value.strip().replace("\r\n", "\n").replace("\\n", "\n")
    if "BEGIN" in text and "PRIVATE KEY" in text:
        return text

    try:
        decoded = base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError("must be PEM or base64 encoded PEM content") from e

    decoded = decoded.strip().replace("\r\n", "\n")
    if "BEGIN" not in decoded or "PRIVATE KEY" not in decoded:
        raise ValueError("must be PEM or base64 encoded PEM content")
    return decoded


class SetupSettings(BaseSettings):
    """Repository setup app configuration from environment variables.

    Required fields (must be set via environment variables):
    - github_app_id: ID of the GitHub App that performs setup
    - github_private_key: Private key of that App
    - label_app_id: App ID stored as the APP_ID secret
    - label_private_key: Private key stored as the APP_PRIVATE_KEY secret

    An empty webhook_secret disables signature verification.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Setup GitHub App
    # -------------------------------------------------------------------------
    github_app_id: int

    # PEM or base64 PEM
    github_private_key: str

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # Timeout for every GitHub API request; a timeout fails the step
    request_timeout_seconds: float = 30.0

    # -------------------------------------------------------------------------
    # Label GitHub App (provisioned into new repositories)
    # -------------------------------------------------------------------------
    label_app_id: str

    label_private_key: str

    # -------------------------------------------------------------------------
    # Webhook
    # -------------------------------------------------------------------------
    # Empty disables signature verification
    webhook_secret: str = ""

    # -------------------------------------------------------------------------
    # Setup behaviour
    # -------------------------------------------------------------------------
    # Apply the default labels through the API after pushing the files
    sync_labels: bool = False

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "0.0.0.0"

    port: int = 8080

    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_app_id")
    @classmethod
    def validate_app_id(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("github_app_id must be a positive integer")
        return v

    @field_validator("label_app_id")
    @classmethod
    def validate_label_app_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("label_app_id cannot be empty")
        return v.strip()

    @field_validator("github_private_key", "label_private_key")
    @classmethod
    def validate_private_key(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("private key cannot be empty")
        return normalize_private_key(v)

    @field_validator("github_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def verification_enabled(self) -> bool:
        return bool(self.webhook_secret)

    def provisioned_secrets(self) -> dict:
        """Secrets written into every new repository, in provisioning order."""
        return {
            APP_ID_SECRET: self.label_app_id,
            APP_PRIVATE_KEY_SECRET: self.label_private_key,
        }


def get_settings() -> SetupSettings:
    """Create and return a SetupSettings instance.

    Returns:
        SetupSettings: Configured settings instance.

    Raises:
        ConfigurationError: If required fields are missing or invalid.
    """
    try:
        return SetupSettings()
    except ValidationError as e:
        # Input values are left out so private keys never reach the logs
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors(include_input=False, include_url=False)
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from None
