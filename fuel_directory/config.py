"""Application configuration management."""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from project-level .env if available
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = os.getenv("APP_NAME", "Fuel Station Directory")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False") == "True"

    # Server
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    reload: bool = os.getenv("RELOAD", "True") == "True"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./fuel_directory.db")

    # Nearest-station search
    nearest_default_limit: int = int(os.getenv("NEAREST_DEFAULT_LIMIT", "5"))
    nearest_max_limit: int = int(os.getenv("NEAREST_MAX_LIMIT", "50"))
    nearest_fast_path_enabled: bool = os.getenv("NEAREST_FAST_PATH_ENABLED", "True") == "True"

    # Duplicate flagging works on one page of records at a time
    duplicate_page_max_size: int = int(os.getenv("DUPLICATE_PAGE_MAX_SIZE", "500"))

    # CORS
    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ALLOW_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000",
        ).split(",")
        if origin.strip()
    ]
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")


# Global settings instance
settings = Settings()
