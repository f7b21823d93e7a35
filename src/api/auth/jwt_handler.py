from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging
from sqlalchemy.orm import Session

from src.common.config.settings import get_settings
from src.common.database.db_connector import get_db
from src.common.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)

# JWT 설정
ALGORITHM = "HS256"

# 보안
security = HTTPBearer()

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)

def verify_token(token: str) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, get_settings().JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT 검증 실패: {e}")
        raise credentials_exception
    if payload.get("sub") is None or payload.get("user_id") is None:
        raise credentials_exception
    return payload

def get_current_active_user(credentials: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db), user_service: UserService = Depends(get_user_service)):
    """현재 활성 사용자 정보 반환"""
    payload = verify_token(credentials.credentials)
    user_id: int = payload.get("user_id")

    user = user_service.get_user_by_id(db, user_id)
    logger.debug(f"get_current_active_user: user_id={user_id}, is_active={user.is_active if user else 'N/A'}")
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user
