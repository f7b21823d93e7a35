import os

# 설정은 lru_cache로 한 번만 로드되므로 src 모듈 임포트 전에 테스트용 값을 지정한다
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_JSON", "false")

import itertools
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.common.database.db_connector import Base
from src.common.models import User, Trade, Watchlist  # noqa: F401
from src.common.services.accounting.types import TradeAction, TradeRecord

BASE_TIME = datetime(2024, 1, 1, 10, 0, 0)


@pytest.fixture
def make_trade():
    """TradeRecord 팩토리. day는 BASE_TIME 기준 경과 일수."""
    ids = itertools.count(1)

    def _make(action, quantity, price, day=0, symbol="AAPL", user_id=1, trade_id=None, profit_loss=0.0):
        return TradeRecord(
            id=trade_id if trade_id is not None else next(ids),
            user_id=user_id,
            symbol=symbol,
            action=TradeAction(action),
            quantity=quantity,
            price=price,
            trade_date=BASE_TIME + timedelta(days=day),
            total_amount=quantity * price,
            profit_loss=profit_loss,
        )

    return _make


@pytest.fixture(scope="function")
def db_session():
    """각 테스트마다 새 in-memory SQLite DB"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_user(db_session):
    user = User(username="trader", email="trader@example.com", hashed_password="x")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user
