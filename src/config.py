from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: str = "postgresql://postgres:root@db:5432/dp-db"

    # Storage
    UPLOAD_DIR: str = "uploads/documents"
    FILES_URL_PREFIX: str = "/documents/files"
    MAX_FILE_SIZE: int = 20 * 1024 * 1024  # 20 MB

    # Signature stamp, in PDF points
    SIGNATURE_WIDTH: float = 150
    SIGNATURE_HEIGHT: float = 75
    DEFAULT_X_RATIO: float = 0.15
    DEFAULT_Y_RATIO: float = 0.15

    # JWT
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # App
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3001",
    ]
    SEED_DEMO_DATA: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
