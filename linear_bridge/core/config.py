from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, ValidationError
import logging
import sys

# Load .env file once when config module is imported
load_dotenv()

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Linear configuration (API key required)
    LINEAR_API_KEY: str
    LINEAR_API_URL: str = "https://api.linear.app/graphql"

    # CORS configuration
    CORS_ORIGINS: str = "http://localhost:3000"

    # Server configuration
    APP_NAME: str = "Linear MCP Bridge"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    @field_validator("LINEAR_API_KEY")
    @classmethod
    def validate_api_key(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} is required but not set")
        return v.strip()

    @field_validator("LINEAR_API_URL")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("LINEAR_API_URL must start with http:// or https://")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("CORS_ORIGINS")
    @classmethod
    def validate_cors_origins(cls, v: str) -> str:
        v = v.strip()
        if v == "*":
            logger.warning(
                "CORS_ORIGINS is set to '*' (allow all origins). "
                "This is insecure and should not be used in production!"
            )
        return v


def load_settings() -> Settings:
    """Load and validate settings, exit with error if validation fails."""
    try:
        return Settings()
    except ValidationError as e:
        logger.error("Configuration validation failed:")
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            logger.error(f"  - {field}: {error['msg']}")
        logger.error(
            "\nPlease check your .env file and ensure LINEAR_API_KEY is set."
        )
        sys.exit(1)


# Create settings instance and validate on import
try:
    settings = load_settings()
    logger.info(f"Configuration loaded successfully (ENV={settings.ENV})")
except Exception as e:
    logger.error(f"Failed to load configuration: {e}")
    sys.exit(1)
