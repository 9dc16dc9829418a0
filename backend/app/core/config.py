import json

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Resolve backend root (…/backend/) regardless of current working directory
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Classroom Learning API"
    ENV: str = "dev"
    API_PREFIX: str = "/api/v1"
    # One origin or several, comma separated
    # e.g. "http://localhost:5173,https://example.com"
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    DATABASE_URL: str = "sqlite:///./classroom.db"
    SQL_ECHO: bool = False

    # ===== Auth =====
    JWT_SECRET_KEY: str = "dev_secret_change_me"
    JWT_ALGORITHM: str = "HS256"
    # 7 days
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080

    # ===== Classrooms =====
    JOIN_CODE_LENGTH: int = 6
    JOIN_CODE_MAX_TRIES: int = 5

    LOG_LEVEL: str = "INFO"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if v is None or v == "":
            return []

        if isinstance(v, list):
            return v

        # String: prefer a JSON list, fall back to comma separated
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                try:
                    return json.loads(s)
                except ValueError:
                    pass
            return [item.strip() for item in s.split(",") if item.strip()]

        return v


settings = Settings()
