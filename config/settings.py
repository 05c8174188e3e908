"""Configuration management for the regression metrics dashboard."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32
WEAK_SECRETS = ['dev', 'test', 'secret', 'password', 'changeme', '12345']
DEV_FALLBACK_SECRET = 'dev-secret-DO-NOT-USE-IN-PRODUCTION-' + 'a' * 32


@dataclass
class AuthConfig:
    """JWT and credential configuration."""

    jwt_secret: str
    jwt_expiry_hours: int = 168  # 7 days
    password_min_length: int = 6
    is_production: bool = False


@dataclass
class DatabaseConfig:
    """Database connection configuration."""

    url: str = "sqlite:///database/metrics.db"
    echo: bool = False


@dataclass
class WebConfig:
    """Web interface configuration."""

    base_url: str = "http://localhost:5000"
    port: int = 5000
    host: str = "127.0.0.1"
    debug: bool = False
    cors_origins: List[str] = field(default_factory=list)


@dataclass
class RateLimitConfig:
    """Flask-Limiter configuration."""

    enabled: bool = True
    storage_uri: str = "memory://"
    default_limits: List[str] = field(
        default_factory=lambda: ["1000 per day", "200 per hour"]
    )


@dataclass
class AppConfig:
    """Process-level configuration."""

    log_level: str = "INFO"


class Settings:
    """Main settings manager.

    Build one explicitly and hand it to ``create_app``; nothing in the
    package reads configuration from a module-level instance.
    """

    def __init__(self, auth: Optional[AuthConfig] = None,
                 database: Optional[DatabaseConfig] = None,
                 web: Optional[WebConfig] = None,
                 rate_limit: Optional[RateLimitConfig] = None,
                 app: Optional[AppConfig] = None):
        self.auth = auth or self._load_auth_config()
        self.database = database or self._load_database_config()
        self.web = web or self._load_web_config()
        self.rate_limit = rate_limit or self._load_rate_limit_config()
        self.app = app or self._load_app_config()

    @staticmethod
    def _load_auth_config() -> AuthConfig:
        """Load JWT settings, failing fast on an unusable secret in production."""
        # DigitalOcean style SECRET values may carry whitespace
        jwt_secret = os.getenv('JWT_SECRET_KEY', '').strip()
        is_production = os.getenv('FLASK_ENV') == 'production'

        if not jwt_secret:
            if is_production:
                error_msg = (
                    "CRITICAL SECURITY ERROR: JWT_SECRET_KEY is not set in production!\n"
                    "The application cannot start without a secure JWT secret.\n"
                    "Generate a secure secret with: python -c 'import secrets; print(secrets.token_hex(32))'"
                )
                logger.error(error_msg)
                raise ValueError(error_msg)
            logger.warning("JWT_SECRET_KEY not set - using development secret (NOT FOR PRODUCTION)")
            jwt_secret = DEV_FALLBACK_SECRET

        if len(jwt_secret) < MIN_SECRET_LENGTH:
            error_msg = (
                f"CRITICAL SECURITY ERROR: JWT_SECRET_KEY is too short ({len(jwt_secret)} chars)!\n"
                f"Minimum length: {MIN_SECRET_LENGTH} characters."
            )
            logger.error(error_msg)
            if is_production:
                raise ValueError(error_msg)
            logger.warning("Continuing in development with weak secret (NOT FOR PRODUCTION)")

        if jwt_secret != DEV_FALLBACK_SECRET and any(weak in jwt_secret.lower() for weak in WEAK_SECRETS):
            logger.warning(
                "JWT_SECRET_KEY appears to contain common weak patterns. "
                "Use a cryptographically secure random value in production."
            )

        return AuthConfig(
            jwt_secret=jwt_secret,
            jwt_expiry_hours=int(os.getenv('JWT_EXPIRY_HOURS', '168')),
            password_min_length=int(os.getenv('PASSWORD_MIN_LENGTH', '6')),
            is_production=is_production,
        )

    @staticmethod
    def _load_database_config() -> DatabaseConfig:
        database_url = os.getenv("DATABASE_URL", "sqlite:///database/metrics.db")

        # PostgreSQL requires postgresql:// instead of postgres://
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        return DatabaseConfig(
            url=database_url,
            echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
        )

    @staticmethod
    def _load_web_config() -> WebConfig:
        is_production = os.getenv('FLASK_ENV') == 'production'
        base_url = os.getenv("WEB_BASE_URL", "http://localhost:5000")

        origins_str = os.getenv("CORS_ORIGINS", "")
        cors_origins = [o.strip() for o in origins_str.split(",") if o.strip()]
        if not cors_origins:
            if is_production:
                # Production: only allow the configured domain
                cors_origins = [base_url]
            else:
                frontend_port = int(os.getenv('FRONTEND_PORT', '3000'))
                cors_origins = [
                    f"http://localhost:{frontend_port}",
                    "http://localhost:3000",
                    "http://localhost:3001",
                ]

        return WebConfig(
            base_url=base_url,
            port=int(os.getenv("WEB_PORT", "5000")),
            host=os.getenv("WEB_HOST", "127.0.0.1"),
            debug=os.getenv("WEB_DEBUG", "false").lower() == "true",
            cors_origins=cors_origins,
        )

    @staticmethod
    def _load_rate_limit_config() -> RateLimitConfig:
        limits_str = os.getenv("RATE_LIMIT_DEFAULTS", "")
        default_limits = [l.strip() for l in limits_str.split(";") if l.strip()]

        config = RateLimitConfig(
            enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
            storage_uri=os.getenv("REDIS_URL") or "memory://",
        )
        if default_limits:
            config.default_limits = default_limits
        return config

    @staticmethod
    def _load_app_config() -> AppConfig:
        return AppConfig(log_level=os.getenv("LOG_LEVEL", "INFO").upper())
