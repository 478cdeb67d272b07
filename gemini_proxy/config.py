"""
Configuration module for the Gemini Proxy.

This module uses Pydantic Settings to load environment variables for the
upstream API key, CORS allow-list, optional client token and logging.

Environment variables are loaded from .env file or system environment.
Settings are rebuilt on every request, so a changed environment takes effect
without restarting the function.
"""

from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Nothing here is required at load time: a missing GEMINI_API_KEY is
    reported per request instead of failing the whole deployment.
    """

    # =========================================================================
    # Upstream (Google Generative Language API)
    # =========================================================================

    GEMINI_API_KEY: Optional[SecretStr] = Field(
        None,
        description="API key sent upstream in the x-goog-api-key header",
    )

    UPSTREAM_TIMEOUT_SECONDS: Optional[float] = Field(
        None,
        description="Client-side timeout for the upstream call (unset = platform limit)",
        gt=0,
    )

    # =========================================================================
    # Client Access Control
    # =========================================================================

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty to allow all)",
    )

    CLIENT_TOKEN: Optional[SecretStr] = Field(
        None,
        description="Shared secret required in X-Client-Token (leave empty to disable)",
    )

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars not defined here
        env_ignore_empty=True,
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        origins = [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]
        return origins

    @property
    def api_key(self) -> str:
        """Upstream API key as plain text, empty string when unset."""
        if self.GEMINI_API_KEY is None:
            return ""
        return self.GEMINI_API_KEY.get_secret_value()

    @property
    def client_token(self) -> str:
        """Required client token as plain text, empty string when disabled."""
        if self.CLIENT_TOKEN is None:
            return ""
        return self.CLIENT_TOKEN.get_secret_value()

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is not recognised
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.strip().upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level


def get_settings() -> Settings:
    """
    Build a Settings instance from the current environment.

    Deliberately not cached: each request sees the environment as it is at
    invocation time. Inject it with ``Depends(get_settings)`` so tests can
    swap it through ``app.dependency_overrides``.

    Returns:
        Settings instance with all configuration loaded and validated.
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate configuration settings and return a status report.

    Secrets are reported only as set/unset.

    Returns:
        Dictionary with validation status and any warnings.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    if not settings.api_key:
        errors.append("GEMINI_API_KEY is not set (every proxied request will fail with 500)")

    if not settings.allowed_origins_list:
        warnings.append("ALLOWED_ORIGINS is empty (any origin may call the proxy)")

    if not settings.client_token:
        warnings.append("CLIENT_TOKEN is not set (X-Client-Token check disabled)")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "allowed_origins": settings.allowed_origins_list,
        "client_token_required": bool(settings.client_token),
    }


if __name__ == "__main__":
    """
    Run this module directly to validate your .env configuration:
        python -m gemini_proxy.config
    """
    print("=" * 80)
    print("GEMINI PROXY CONFIGURATION")
    print("=" * 80)

    try:
        status = validate_configuration(get_settings())
    except Exception as e:
        print(f"\n✗ Configuration error: {e}")
        raise SystemExit(1)

    origins = status["allowed_origins"]
    print(f"\n  Allowed Origins:  {', '.join(origins) if origins else '(any)'}")
    print(f"  Client Token:     {'required' if status['client_token_required'] else 'disabled'}")

    if status["valid"]:
        print("\n✓ All critical checks passed!")
    else:
        print("\n✗ Configuration errors found:")
        for error in status["errors"]:
            print(f"  - {error}")

    if status["warnings"]:
        print("\n⚠ Warnings:")
        for warning in status["warnings"]:
            print(f"  - {warning}")
