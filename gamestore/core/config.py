from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    API_PREFIX: str = "/api"
    ALLOWED_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "gamestore"
    POSTGRES_USER: str = "gamestore_user"
    POSTGRES_PASSWORD: str = "gamestore_pass"
    # Full SQLAlchemy URL, e.g. sqlite+aiosqlite:///./gamestore.db for local runs
    DB_URL: Optional[str] = None

    SECRET_KEY: str = "change-me"
    ALGO: str = "HS256"
    TOKEN_MIN: int = 60
    EMAIL_TOKEN_HOURS: int = 24
    FRONTEND_URL: str = "http://localhost:5173"

    AWS_REGION: str = "eu-north-1"
    S3_BUCKET: Optional[str] = None
    MEDIA_BASE_URL: Optional[str] = None
    MIRROR_GAME_MEDIA: bool = False
    EMAIL_SENDER: Optional[str] = None

    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@gamestore.local"
    ADMIN_PASSWORD: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

settings = Settings()
