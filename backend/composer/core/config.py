from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pathlib import Path
import urllib.parse

class Settings(BaseSettings):
    PROJECT_NAME: str = "Proposal Composer API"
    PROJECT_VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    SERVER_HOST: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"
    # Editor frontend dev servers
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database (template records only)
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None # Explicit URL wins over the POSTGRES_* parts

    # --- Editor behaviour ---
    ELEMENT_START_X: float = 50
    ELEMENT_START_Y: float = 50
    ELEMENT_VERTICAL_STEP: float = 60 # New elements stack below the existing ones
    DUPLICATE_OFFSET: float = 20
    NUDGE_STEP: float = 1
    NUDGE_STEP_LARGE: float = 10

    # --- Page defaults ---
    DEFAULT_PAGE_WIDTH: str = "800px"
    DEFAULT_PAGE_HEIGHT: str = "auto"
    DEFAULT_PAGE_BACKGROUND: str = "#ffffff"
    DEFAULT_PAGE_PADDING: str = "40px"
    DEFAULT_FONT_FAMILY: str = "Arial, sans-serif"
    # A4 at 96dpi, used as min-height when a page height is "auto"
    PAGE_MIN_HEIGHT_PX: int = 1123

    # --- Image optimisation before save ---
    IMAGE_MAX_WIDTH: int = 800
    IMAGE_JPEG_QUALITY: int = 80
    LIBRARY_IMAGE_MAX_WIDTH: int = 600
    LIBRARY_IMAGE_JPEG_QUALITY: int = 85

    # --- Merge formatting ---
    CURRENCY_SYMBOL: str = "R$"

    model_config = SettingsConfigDict(
        # backend/composer/core/config.py -> project root holds the .env
        env_file=Path(__file__).resolve().parent.parent.parent.parent / ".env",
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True
    )

settings = Settings()

# Construct DATABASE_URL from the Postgres parts when no explicit URL was given
if not settings.DATABASE_URL and settings.POSTGRES_USER and settings.POSTGRES_PASSWORD and \
   settings.POSTGRES_SERVER and settings.POSTGRES_DB:
    encoded_password = urllib.parse.quote_plus(settings.POSTGRES_PASSWORD)
    settings.DATABASE_URL = (
        f"postgresql+asyncpg://{settings.POSTGRES_USER}:{encoded_password}@"
        f"{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
    )
