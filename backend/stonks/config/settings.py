"""
PURPOSE: Configuration settings for the Stonks Slack bot.

This module uses Pydantic Settings to manage configuration from environment
variables and .env files. All settings are validated and typed.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    PURPOSE: Central configuration class for Stonks.

    Manages the listen address, Slack credentials, the market data backend
    and timeouts for outbound calls. Settings are loaded from environment
    variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # HTTP Server
    ADDR: str = "0.0.0.0:8080"
    SHUTDOWN_TIMEOUT_SECONDS: int = 15

    # Slack
    SLACK_BOT_TOKEN: str = ""
    # Empty disables request signature verification (reduced-trust mode).
    SLACK_SIGNING_SECRET: str = ""
    SLACK_API_URL: str = "https://slack.com/api/"
    SLACK_SIGNATURE_MAX_AGE_SECONDS: int = 300
    REQUIRE_SIGNING_SECRET: bool = False

    # Market Data
    MARKET_BACKEND: str = "yahoo"
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    # System Settings
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    def is_production(self) -> bool:
        """
        PURPOSE: Determine whether the app is running in production mode.

        Returns:
            bool: True when APP_ENV indicates production.
        """
        return self.APP_ENV.strip().lower() in {"prod", "production"}

    def listen_host(self) -> str:
        """Host part of ADDR; an empty host (":8080") means all interfaces."""
        host, _, _ = self.ADDR.rpartition(":")
        return host or "0.0.0.0"

    def listen_port(self) -> int:
        """
        PURPOSE: Port part of ADDR.

        Raises:
            ValueError: If ADDR has no numeric port.
        """
        _, sep, port = self.ADDR.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"ADDR must be in host:port form, got {self.ADDR!r}")
        return int(port)

    def signature_verification_enabled(self) -> bool:
        return bool(self.SLACK_SIGNING_SECRET)

    def validate_signing_secret(self) -> None:
        """
        PURPOSE: Enforce that a signing secret is configured where it must be.

        CALLED BY: Application startup (create_app).

        An empty SLACK_SIGNING_SECRET turns off request verification. That is
        allowed for local development; in production, or when
        REQUIRE_SIGNING_SECRET is set, it is refused.

        Raises:
            ValueError: If the secret is empty and verification is mandatory.
        """
        if self.signature_verification_enabled():
            return

        if self.REQUIRE_SIGNING_SECRET or self.is_production():
            raise ValueError(
                "SECURITY: SLACK_SIGNING_SECRET is empty but request signature "
                "verification is required.\n"
                "Set it in your .env file or as an environment variable:\n"
                "  SLACK_SIGNING_SECRET=<your-slack-app-signing-secret>"
            )


settings: Settings = Settings()
