"""Application configuration"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./products.db"
    ENVIRONMENT: str = "development"
    PORT: int = 8083

    # CORS (storefront admin dev servers)
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:5174"]
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "PUT", "DELETE"]

    # Image uploads
    UPLOAD_DIR: str = "./uploadProductImages"
    ALLOWED_IMAGE_EXTENSIONS: List[str] = ["jpg", "jpeg", "png", "gif"]
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 30

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
