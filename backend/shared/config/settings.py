"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./floor_ledger.db"

    # Redis relay for tenant events (delivery to clients happens downstream)
    redis_url: str = "redis://localhost:6379"
    redis_events_enabled: bool = False
    redis_event_channel_prefix: str = "tenant"
    redis_socket_timeout: int = 5

    # JWT verification. Tokens are issued by the external auth service.
    jwt_secret: str = "dev-secret-change-me-in-production"
    jwt_issuer: str = "floor-ledger"
    jwt_audience: str = "floor-ledger-users"

    # Server
    rest_api_port: int = 8000
    # Comma-separated CORS origins; empty uses the local development defaults
    allowed_origins: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Creates a demo tenant with tables and menu on an empty database
    seed_demo_data: bool = False

    def validate_production_secrets(self) -> list[str]:
        """
        Validate that secrets are properly configured for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        weak_secrets = {
            "dev-secret-change-me-in-production",
            "secret",
            "password",
            "changeme",
            "default",
        }

        if self.environment == "production":
            if self.jwt_secret in weak_secrets or len(self.jwt_secret) < 32:
                errors.append(
                    "JWT_SECRET must be at least 32 characters and not a default value in production"
                )

            if self.debug:
                errors.append("DEBUG must be False in production")

            if self.database_url.startswith("sqlite"):
                errors.append("DATABASE_URL must point to a server database in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

# Direct access to commonly used settings
DATABASE_URL = settings.database_url
