import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default

    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str | None = os.getenv("DB_HOST")
    DB_PORT: str | None = os.getenv("DB_PORT", "5432")
    DB_NAME: str | None = os.getenv("DB_NAME")
    # Full SQLAlchemy URL, takes precedence over the DB_* parts
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", 5))

    # Vendor discovery
    VENDOR_SEARCH_RADIUS_METERS: int = int(
        os.getenv("VENDOR_SEARCH_RADIUS_METERS", 30000))  # 30 km
    VENDOR_SEARCH_LIMIT: int = int(os.getenv("VENDOR_SEARCH_LIMIT", 50))
    RECENT_PRODUCTS_LIMIT: int = int(os.getenv("RECENT_PRODUCTS_LIMIT", 3))

    # Realtime change hints
    CHANGE_NOTIFY_DEBOUNCE_SECONDS: float = float(
        os.getenv("CHANGE_NOTIFY_DEBOUNCE_SECONDS", 0.5))

    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:8081,http://127.0.0.1:8002")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

MARKETPLACE_DATABASE_URL = settings.DATABASE_URL or (
    f"postgresql+psycopg2://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}"
)
