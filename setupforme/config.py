from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    # Security - MUST be set via environment
    secret_key: str = ""

    # Database - PostgreSQL required
    database_url: str

    # JWT Configuration
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # Tokens live for a week

    # Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = "INFO"

    # Port uvicorn binds to when started via `python -m setupforme`
    port: int = 8080

    # CORS Configuration
    # Comma-separated list of allowed origins for CORS requests
    # Origins outside this list get no CORS headers at all
    cors_origins: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"

    @property
    def cors_origin_list(self) -> List[str]:
        """Parsed CORS allow-list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ==========================================================================
    # Package lookup (winget.run)
    # ==========================================================================
    # Used to auto-resolve a winget id from an app name and for search suggestions
    package_search_url: str = "https://api.winget.run/v2/packages"
    package_search_timeout: float = 8.0  # Seconds; a timeout counts as "not found"
    package_search_limit: int = 5  # Max suggestions returned by /api/winget/search

    class Config:
        # For Docker Compose: environment variables are passed directly
        # For native development: looks for .env in the working directory
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file
        case_sensitive = False  # Allow lowercase env vars to match uppercase field names

@lru_cache()
def get_settings():
    return Settings()
