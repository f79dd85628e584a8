import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    DB_URL: str = "sqlite+aiosqlite:///data/db.sqlite3"
    BASE_URL: str = "http://localhost:8000"
    UPLOAD_DIR: str = "uploads"

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", ".env"),
        extra="ignore",
    )


settings = Settings()
database_url = settings.DB_URL
