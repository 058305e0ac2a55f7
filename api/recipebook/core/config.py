"""Application configuration."""
import logging
import sys
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./recipes.db"

    # Environment configuration
    ENVIRONMENT: str = "development"  # "development" or "production"

    # CORS configuration - comma-separated origins
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    # Dewey sequence allocation: leaf categories at or below this level get
    # a numbered suffix per recipe (e.g. 411.21 -> 411.21.001)
    SEQUENCE_MIN_LEVEL: int = 4
    SEQUENCE_WIDTH: int = 3

    # How much of a failing import line is echoed back in its error message
    MAX_IMPORT_ERROR_PREVIEW: int = 50

    class Config:
        env_file = ".env"

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def validate_production_settings(self) -> None:
        """Validate settings for production environment.

        Raises SystemExit if the database is left on the local default.
        """
        if self.ENVIRONMENT == "production":
            if self.DATABASE_URL.startswith("sqlite:///./"):
                print("FATAL: DATABASE_URL must be set in production!", file=sys.stderr)
                print("Point DATABASE_URL at a persistent database.", file=sys.stderr)
                sys.exit(1)

            if self.SEQUENCE_WIDTH < 1:
                print("FATAL: SEQUENCE_WIDTH must be at least 1", file=sys.stderr)
                sys.exit(1)


def setup_logging(level: str | None = None) -> None:
    """Setup logging configuration"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='[%(levelname)s] %(name)s: %(message)s',
        force=True
    )


settings = Settings()
# Validate on startup
settings.validate_production_settings()
