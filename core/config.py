from typing import Optional

from pydantic.v1 import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    ADMIN_PASSWORD: Optional[str] = None
    DEBUG: bool = False
    CORS_ORIGINS: str = "*"

    MAX_PHOTOS: int = 6
    MAX_INTERESTS: int = 10
    # Сколько раз движки повторяют транзакцию при конфликте записи
    CONFLICT_RETRIES: int = 5
    CONFESSIONS_PAGE_SIZE: int = 20
    DISCOVER_LIMIT: int = 10

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Создаём глобальный объект, который будем импортировать везде
settings = Settings()
