from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Recipe Share API"
    ROOT_PATH: str = ""
    ENVIRONMENT: str = "development"
    LOGGING_CONFIG: str = "logging.ini"

    # Database
    DATABASE_URL: str = "sqlite:///./db/recipes.db"
    DB_TIMEOUT_SECONDS: int = 5  # connect / pool checkout timeout
    DB_RETRY_SECONDS: int = 5  # fixed backoff between reconnect attempts

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000"
    ]

    # Uploaded images
    CONTENT_DIR: str = "./public/images"
    IMAGE_MAX_WIDTH: int = 1200
    IMAGE_QUALITY: int = 80
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    UPLOAD_RATE_LIMIT: str = "30/minute"

    # Ratings
    RATING_MIN: float = 1
    RATING_MAX: float = 5

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
