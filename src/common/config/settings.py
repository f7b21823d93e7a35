import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# APP_ENV 환경 변수에 따라 적절한 .env 파일 로드
APP_ENV = os.getenv("APP_ENV", "development")
load_dotenv(f".env.{APP_ENV}")


class Settings(BaseSettings):
    # 애플리케이션
    APP_ENV: str = "development"

    # 데이터베이스 설정
    DATABASE_URL: str = "sqlite:///./papertrade.db"

    # 시세 제공자 (Finnhub)
    FINNHUB_API_KEY: Optional[str] = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    QUOTE_TIMEOUT_SECONDS: float = 5.0
    QUOTE_RETRIES: int = 2

    # 인증
    JWT_SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # 회계
    TIMEZONE: str = "UTC"
    COST_BASIS_METHOD: str = "fifo"  # 'fifo' or 'average'

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 2
    LOG_JSON: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
