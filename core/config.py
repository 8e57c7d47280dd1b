import secrets

from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    # No default - must be set via .env or environment variable
    SECRET_KEY: str = ""
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class CelerySettings(BaseSettings):
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_TIME_LIMIT: int = 300  # 5 minutes
    CELERY_TASK_SOFT_TIME_LIMIT: int = 270  # 4.5 minutes

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class TransitSettings(BaseSettings):
    """Upstream transit providers (ResRobot for trips, Trafiklab for departures)."""
    RESROBOT_API_KEY: str = ""
    RESROBOT_BASE_URL: str = "https://api.resrobot.se/v2.1"
    TRAFIKLAB_API_KEY: str = ""
    TRAFIKLAB_BASE_URL: str = "https://realtime-api.trafiklab.se/v1"
    TRANSIT_HTTP_TIMEOUT_SECONDS: float = 15.0

    # Response cache (successful responses only)
    TRANSIT_CACHE_TTL_SECONDS: int = 30
    TRANSIT_CACHE_MAX_ENTRIES: int = 512

    # A leg is valid if a trip departs within this window
    LEG_VALIDATION_WINDOW_MINUTES: int = 120

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Settings(BaseSettings):
    # Database - No default password for security
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""  # Required via .env
    POSTGRES_DB: str = "pendel_dev"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    # Full URL override (e.g. sqlite for tests)
    SQLALCHEMY_DATABASE_URI: str = ""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False  # Default to False for security

    # Admin token for service alert endpoints
    ADMIN_TOKEN: str = ""

    # Frontend
    FRONTEND_URL: str = "http://localhost:5173"

    # Compensation
    COMPENSATION_THRESHOLD_MINUTES: int = 20
    COMPENSATION_RATE_PER_MINUTE: float = 6.5
    ENCRYPTION_KEY: str = ""

    # Notifications (0 disables de-duplication)
    NOTIFICATION_DEDUP_SECONDS: int = 300

    # In-process commute monitor (disabled in tests)
    COMMUTE_MONITOR_ENABLED: bool = True

    # Auth settings (nested)
    auth: AuthSettings = AuthSettings()

    # Celery settings (nested)
    celery: CelerySettings = CelerySettings()

    # Transit provider settings (nested)
    transit: TransitSettings = TransitSettings()

    @property
    def DATABASE_URL(self) -> str:
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return (
            f"postgresql+psycopg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def validate_production_settings(self) -> None:
        """Validate critical settings for production environment.

        Call this during application startup.
        Raises ValueError if production settings are invalid.
        """
        errors = []

        if self.is_production:
            # Check SECRET_KEY
            if not self.auth.SECRET_KEY or len(self.auth.SECRET_KEY) < 32:
                errors.append(
                    "SECRET_KEY must be set to a secure value (min 32 chars) in production"
                )

            # Check ENCRYPTION_KEY
            if not self.ENCRYPTION_KEY or len(self.ENCRYPTION_KEY) < 32:
                errors.append(
                    "ENCRYPTION_KEY must be set to a secure value (min 32 chars) in production"
                )

            # Check POSTGRES_PASSWORD
            if not self.SQLALCHEMY_DATABASE_URI and (
                not self.POSTGRES_PASSWORD or self.POSTGRES_PASSWORD == "postgres"
            ):
                errors.append(
                    "POSTGRES_PASSWORD must be set to a secure value in production"
                )

            # Check ADMIN_TOKEN
            if not self.ADMIN_TOKEN or len(self.ADMIN_TOKEN) < 32:
                errors.append(
                    "ADMIN_TOKEN must be set to a secure value (min 32 chars) in production"
                )

            # Upstream credentials
            if not self.transit.RESROBOT_API_KEY:
                errors.append("RESROBOT_API_KEY must be set in production")
            if not self.transit.TRAFIKLAB_API_KEY:
                errors.append("TRAFIKLAB_API_KEY must be set in production")

            # Check DEBUG is disabled
            if self.DEBUG:
                errors.append("DEBUG must be False in production")

        if errors:
            raise ValueError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def validate_development_settings(self) -> None:
        """Set sensible defaults for development if not configured."""
        # Generate random SECRET_KEY for development if not set
        if not self.auth.SECRET_KEY:
            self.auth.SECRET_KEY = secrets.token_urlsafe(32)
            print("WARNING: Using auto-generated SECRET_KEY for development")

        # Generate random ENCRYPTION_KEY for development if not set
        if not self.ENCRYPTION_KEY:
            self.ENCRYPTION_KEY = secrets.token_urlsafe(32)
            print("WARNING: Using auto-generated ENCRYPTION_KEY for development")

        # Use default password for development if not set
        if not self.POSTGRES_PASSWORD:
            self.POSTGRES_PASSWORD = "postgres"
            print("WARNING: Using default POSTGRES_PASSWORD for development")

        # Generate admin token for development if not set
        if not self.ADMIN_TOKEN:
            self.ADMIN_TOKEN = secrets.token_urlsafe(32)
            print(f"WARNING: Using auto-generated ADMIN_TOKEN for development: {self.ADMIN_TOKEN}")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create settings instance
settings = Settings()

# Validate based on environment
if settings.is_production:
    settings.validate_production_settings()
else:
    settings.validate_development_settings()
