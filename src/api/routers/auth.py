# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from src.common.database.db_connector import get_db
from src.common.schemas.user import UserCreate, UserRead, UserLogin, Token
from src.common.services.user_service import UserService, get_user_service
from src.common.utils.exceptions import UserAlreadyExistsException, InvalidCredentialsException
from src.api.auth.jwt_handler import create_access_token, get_current_active_user
from src.common.models.user import User
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED, tags=["auth"])
def register_user(user: UserCreate, db: Session = Depends(get_db), user_service: UserService = Depends(get_user_service)):
    """사용자 등록"""
    try:
        return user_service.create_user(db, user)
    except UserAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/login", response_model=Token, tags=["auth"])
def login_user(user_credentials: UserLogin, db: Session = Depends(get_db), user_service: UserService = Depends(get_user_service)):
    """사용자 로그인. JWT 액세스 토큰 발급"""
    try:
        user = user_service.authenticate_user(db, user_credentials.username, user_credentials.password)
    except InvalidCredentialsException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user.username, "user_id": user.id})
    logger.info(f"로그인 성공: username={user.username}")
    return {"access_token": access_token, "token_type": "bearer", "user": user}

@router.get("/me", response_model=UserRead, tags=["auth"])
def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    """현재 사용자 정보 조회"""
    return current_user
