# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from src.api.auth.jwt_handler import get_current_active_user
from src.api.dependencies import get_portfolio_service
from src.api.routers.trades import trade_to_dict
from src.common.database.db_connector import get_db
from src.common.models.user import User
from src.common.schemas.user import PasswordChange, UserRead, UserUpdate
from src.common.services.portfolio_service import PortfolioService
from src.common.services.user_service import UserService, get_user_service
from src.common.services.watchlist_service import WatchlistService, get_watchlist_service
from src.common.utils.exceptions import InvalidCredentialsException, UserAlreadyExistsException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])

RECENT_TRADES_LIMIT = 10

@router.get("", tags=["profile"])
def get_profile(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
    watchlist_service: WatchlistService = Depends(get_watchlist_service),
):
    """사용자 정보, 기간별 실현손익 요약, 최근 거래 10건"""
    overall = portfolio_service.trade_statistics(current_user.id, period="all")
    stats = {
        "total_trades": overall["total_trades"],
        "watchlist_count": len(watchlist_service.get_watchlist(db, current_user.id)),
        "total_profit": overall["realized_profit"],
        "win_rate": overall["win_rate"],
    }
    for period in ("month", "week", "today"):
        stats[f"{period}_profit"] = portfolio_service.trade_statistics(current_user.id, period=period)["realized_profit"]

    recent = portfolio_service.trade_history(current_user.id)[:RECENT_TRADES_LIMIT]
    return {
        "user": UserRead.model_validate(current_user),
        "stats": stats,
        "recent_trades": [trade_to_dict(t) for t in recent],
    }

@router.put("/update", response_model=UserRead, tags=["profile"])
def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    """이메일/이름 수정. 다른 계정이 쓰는 이메일이면 400"""
    try:
        user = user_service.update_user(db, current_user.id, user_update)
    except UserAlreadyExistsException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user

@router.post("/change-password", tags=["profile"])
def change_password(
    passwords: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    """현재 비밀번호 확인 후 변경"""
    if passwords.new_password != passwords.confirm_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New passwords do not match")
    try:
        user_service.change_password(db, current_user.id, passwords.current_password, passwords.new_password)
    except InvalidCredentialsException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Password changed successfully"}

@router.delete("/delete", tags=["profile"])
def delete_account(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
):
    """계정과 모든 거래 기록, 관심 종목 삭제"""
    if not user_service.delete_user(db, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info(f"계정 삭제 요청 처리: user_id={current_user.id}")
    return {"message": "Account deleted successfully"}
