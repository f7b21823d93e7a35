# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query

from src.api.auth.jwt_handler import get_current_active_user
from src.api.dependencies import get_portfolio_service
from src.common.models.user import User
from src.common.schemas.portfolio import (
    MonthlyPerformanceRead,
    PerformanceSnapshotRead,
    PerformersResponse,
    PositionRead,
)
from src.common.services.accounting.types import PerformanceSnapshot, RealizedTrade
from src.common.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


def snapshot_to_dict(snapshot: PerformanceSnapshot) -> dict:
    data = {
        name: getattr(snapshot, name)
        for name in PerformanceSnapshotRead.model_fields
        if name not in ("positions", "quotes_complete")
    }
    data["quotes_complete"] = snapshot.quotes_complete
    data["positions"] = [
        {
            "symbol": v.symbol,
            "quantity": v.quantity,
            "average_price": v.average_price,
            "total_cost": v.total_cost,
            "current_price": v.current_price,
            "current_value": v.current_value,
            "unrealized_profit": v.unrealized_profit,
            "unrealized_profit_percentage": v.unrealized_profit_percentage,
            "price_status": v.price_status.value,
        }
        for v in snapshot.positions
    ]
    return data


def performer_to_dict(realized: RealizedTrade) -> dict:
    trade = realized.trade
    return {
        "trade_id": trade.id,
        "symbol": trade.symbol,
        "company_name": trade.company_name,
        "quantity": trade.quantity,
        "price": trade.price,
        "trade_date": trade.trade_date,
        "profit_loss": realized.profit_loss,
        "profit_loss_percentage": realized.profit_loss_percentage,
        "average_buy_price": realized.average_buy_price,
    }


@router.get("/positions", response_model=List[PositionRead], tags=["portfolio"])
def get_positions(
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """현재 보유 종목 (수량 0 종목 제외)"""
    positions = portfolio_service.compute_positions(current_user.id)
    return [
        {
            "symbol": p.symbol,
            "company_name": p.company_name,
            "quantity": p.quantity,
            "average_price": p.average_price,
            "total_cost": p.total_cost,
        }
        for p in positions
    ]


@router.get("/performance/{period}", response_model=PerformanceSnapshotRead, tags=["portfolio"])
async def get_performance(
    period: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """기간 성과. period: today, week, month, year, all, custom(start/end)"""
    snapshot = await portfolio_service.compute_metrics(current_user.id, period=period, start=start, end=end)
    return snapshot_to_dict(snapshot)


@router.get("/monthly", response_model=List[MonthlyPerformanceRead], tags=["portfolio"])
def get_monthly_performance(
    months: int = Query(12, ge=1, le=60),
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """최근 N개월 월별 실현손익 (오래된 달부터)"""
    return [
        {"month": m.month, "start": m.start, "end": m.end, "profit": m.profit, "trades": m.trades}
        for m in portfolio_service.monthly_performance(current_user.id, months=months)
    ]


@router.get("/performers", response_model=PerformersResponse, tags=["portfolio"])
def get_performers(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """수익/손실 상위 매도 거래"""
    result = portfolio_service.performers(current_user.id, limit=limit)
    return {
        "top": [performer_to_dict(r) for r in result["top"]],
        "worst": [performer_to_dict(r) for r in result["worst"]],
    }
