from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):

    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Invitations
    APP_URL: str = "http://localhost:3000"
    INVITE_EXPIRE_DAYS: int = 7
    MIN_PASSWORD_LENGTH: int = 6

    # Email
    MAIL_USERNAME: str
    MAIL_PASSWORD: str
    MAIL_FROM: str
    MAIL_PORT: int = 587
    MAIL_SERVER: str
    MAIL_TIMEOUT_SECONDS: float = 10

    # Redis (token blacklist)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_TIMEOUT_SECONDS: float = 2

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings():
    return Settings()
