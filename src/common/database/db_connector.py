import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from src.common.config.settings import get_settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = get_settings().DATABASE_URL

logger.debug(f"데이터베이스 URL: {SQLALCHEMY_DATABASE_URL}")


def build_engine(url: str):
    """SQLite는 스레드풀에서 세션을 공유하므로 check_same_thread를 해제한다."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = build_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        logger.debug("DB 세션 시작.")
        yield db
    finally:
        db.close()
        logger.debug("DB 세션 종료.")
