"""
Interio Estimator API Configuration
Environment variable loading with validation and safe defaults
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

TRUE_VALUES = ("true", "1", "yes")


class ConfigError(Exception):
    """Configuration validation error"""
    pass


class Config:
    """Application configuration with environment variable validation"""

    # Application configuration
    APP_ENV: str = "development"
    APP_PORT: int = 8000
    APP_DEBUG: bool = False
    APP_LOG_LEVEL: str = "INFO"

    # Database configuration
    DATABASE_URL: str = "sqlite:///./data/interio_estimator.db"
    DB_ECHO: bool = False

    # Upload / rate limiting
    MAX_UPLOAD_BYTES: int = 2 * 1024 * 1024
    RATE_LIMIT_DEFAULT: str = "100/minute"

    # Token verification (tokens are issued by the hosted auth provider)
    JWT_SECRET: str = ""
    JWT_AUD: str = "authenticated"

    def __init__(self):
        """Initialize and validate configuration"""
        self._load_env_vars()
        self._validate_config()

    def _load_env_vars(self) -> None:
        """Load environment variables with defaults"""
        self.APP_ENV = os.getenv("APP_ENV", self.APP_ENV)
        self.APP_PORT = int(os.getenv("APP_PORT", str(self.APP_PORT)))
        self.APP_DEBUG = os.getenv("APP_DEBUG", str(self.APP_DEBUG)).lower() in TRUE_VALUES
        self.APP_LOG_LEVEL = os.getenv("APP_LOG_LEVEL", self.APP_LOG_LEVEL).upper()

        self.DATABASE_URL = os.getenv("DATABASE_URL", self.DATABASE_URL)
        self.DB_ECHO = os.getenv("DB_ECHO", str(self.DB_ECHO)).lower() in TRUE_VALUES

        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(self.MAX_UPLOAD_BYTES)))
        self.RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", self.RATE_LIMIT_DEFAULT)

        self.JWT_SECRET = os.getenv("JWT_SECRET", self.JWT_SECRET)
        self.JWT_AUD = os.getenv("JWT_AUD", self.JWT_AUD)

    def _validate_config(self) -> None:
        """Validate configuration values"""
        if self.APP_LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Invalid APP_LOG_LEVEL: {self.APP_LOG_LEVEL}")

        if not self.DATABASE_URL.startswith(("sqlite", "postgres")):
            raise ConfigError(
                "Invalid DATABASE_URL: must start with sqlite:// or postgresql://"
            )

        if self.MAX_UPLOAD_BYTES < 1024:
            raise ConfigError("MAX_UPLOAD_BYTES must be at least 1024")

        if self.is_production() and not self.JWT_SECRET:
            raise ConfigError("JWT_SECRET is required in production")

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.APP_ENV.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.APP_ENV.lower() == "development"


# Global configuration instance
try:
    config = Config()
except ConfigError as e:
    print(f"Configuration Error: {e}")
    print("\nPlease ensure all required environment variables are set.")
    raise
