"""
User 모델 정의 파일입니다.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, func
from sqlalchemy.orm import relationship
from src.common.database.db_connector import Base


class User(Base):
    """
    app_users 테이블과 매핑되는 User 모델 클래스입니다.

    Attributes:
        id (Integer): 사용자의 고유 ID.
        username (String): 사용자 이름.
        hashed_password (String): bcrypt로 해시된 사용자 비밀번호.
        email (String): 사용자 이메일.
        full_name (String): 사용자 전체 이름.
        is_active (Boolean): 계정 활성 상태.
        created_at (DateTime): 계정 생성 시간.
        updated_at (DateTime): 계정 정보 마지막 수정 시간.
        trades (relationship): 사용자의 모의매매 기록.
    """
    __tablename__ = 'app_users'

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    hashed_password = Column(String(128), nullable=True)
    email = Column(String(100), unique=True, nullable=True)
    full_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    trades = relationship("Trade", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}')>"
