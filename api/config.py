"""
Environment-aware configuration.
Values come from the process environment (and .env via python-dotenv).
JWT_SECRET signs access tokens, JWT_REFRESH_SECRET signs refresh tokens;
the two must differ.
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _csv(value: str) -> tuple:
    return tuple(item.strip() for item in value.split(",") if item.strip())


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///auth-sessions.db")
    SQL_ECHO = False

    # JWT
    JWT_ISSUER = os.getenv("JWT_ISSUER", "auth-session-api")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "auth-session-clients")
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-access-secret-change-me-0123456789")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me-0123456789")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRATION_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRATION_DAYS", "7"))

    # Roles
    ALLOWED_ROLES = _csv(os.getenv("ALLOWED_ROLES", "Admin,Manager,User"))
    DEFAULT_ROLE = os.getenv("DEFAULT_ROLE", "User")

    # Bootstrap admin for `flask seed-admin`
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    # Retention of revoked, long-expired refresh token records
    RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", "30"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    SQL_ECHO = os.getenv("SQL_ECHO", "0").lower() in ("1", "true", "yes")


class TestingConfig(BaseConfig):
    TESTING = True
    # an in-memory sqlite db is a single connection shared by every thread
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///auth-sessions-test.db")
    LOG_LEVEL = "WARNING"
    JWT_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
