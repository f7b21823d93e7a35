import os

# 설정은 lru_cache로 한 번만 로드되므로 src 모듈 임포트 전에 테스트용 값을 지정한다
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.auth.jwt_handler import get_current_active_user
from src.api.main import app
from src.common.database.db_connector import Base, get_db
from src.common.models.user import User
from src.common.services.quote_service import QuoteService, get_quote_service


@pytest.fixture(scope="function")
def db_session():
    """함수 스코프 fixture: 각 테스트에 대해 깨끗한 in-memory DB 세션을 제공합니다."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def mock_quote_service():
    # MOCK: QuoteService (외부 Finnhub 호출 차단)
    service = MagicMock(spec=QuoteService)
    service.get_quote = AsyncMock()
    service.get_quotes = AsyncMock(return_value={})
    service.search_symbols = AsyncMock(return_value=[])
    service.get_candles = AsyncMock()
    service.get_recommendation = AsyncMock()
    service.get_company_profile = AsyncMock()
    return service


@pytest.fixture
def client(db_session, mock_quote_service):
    """DB와 시세 제공자를 교체한 TestClient (인증은 실제 JWT 경로 사용)"""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_quote_service] = lambda: mock_quote_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def test_user(db_session):
    user = User(username="trader", email="trader@example.com", hashed_password="x")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_client(client, test_user):
    """현재 사용자를 test_user로 고정한 TestClient"""
    app.dependency_overrides[get_current_active_user] = lambda: test_user
    return client
