# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from src.api.auth.jwt_handler import get_current_active_user
from src.api.dependencies import get_portfolio_service
from src.common.models.user import User
from src.common.schemas.trade import SimulatedTradeItem, SimulatedTradeResult, TradeHistoryResponse, TradeStatistics
from src.common.services.accounting.types import TradeRecord
from src.common.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trades", tags=["trades"])


def trade_to_dict(trade: TradeRecord) -> dict:
    return {
        "id": trade.id,
        "symbol": trade.symbol,
        "company_name": trade.company_name,
        "action": trade.action.value,
        "quantity": trade.quantity,
        "price": trade.price,
        "total_amount": trade.total_amount,
        "trade_date": trade.trade_date,
        "profit_loss": trade.profit_loss,
        "profit_loss_percentage": trade.profit_loss_percentage,
        "average_buy_price": trade.average_buy_price,
        "notes": trade.notes,
    }


@router.post("/simulate", response_model=SimulatedTradeResult, tags=["trades"])
async def simulate_trade(
    trade: SimulatedTradeItem,
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """모의매매 기록. 가격을 생략하면 현재가로 체결한다."""
    logger.debug(f"simulate_trade 호출: user_id={current_user.id}, symbol={trade.symbol}, action={trade.action}")
    price = trade.price
    if price is None:
        quote = await portfolio_service.quote_service.get_quote(trade.symbol)
        price = quote.current_price
        logger.debug(f"종목 {trade.symbol} 현재가로 체결: {price}")

    result = await run_in_threadpool(
        portfolio_service.record_trade,
        current_user.id,
        trade.symbol,
        trade.action,
        trade.quantity,
        price,
        company_name=trade.company_name,
        notes=trade.notes,
    )
    return {
        "message": "모의매매 기록 완료",
        "trade": trade_to_dict(result.trade),
        "profit_loss": result.profit_loss,
    }


@router.get("/history", response_model=TradeHistoryResponse, tags=["trades"])
def get_trade_history(
    symbol: Optional[str] = None,
    period: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """최신순 거래 이력 조회"""
    trades = portfolio_service.trade_history(current_user.id, symbol=symbol, period=period, start=start, end=end)
    logger.debug(f"사용자({current_user.id})의 거래 이력 {len(trades)}건 조회됨.")
    return {"trades": [trade_to_dict(t) for t in trades], "count": len(trades)}


@router.get("/stats", response_model=TradeStatistics, tags=["trades"])
def get_trade_stats(
    period: str = "all",
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """기간별 실현손익 통계"""
    return portfolio_service.trade_statistics(current_user.id, period=period)


@router.delete("/{trade_id}", tags=["trades"])
def delete_trade(
    trade_id: int,
    current_user: User = Depends(get_current_active_user),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
):
    """거래 삭제. 같은 종목의 이후 매도 손익은 다시 계산된다."""
    deleted = portfolio_service.delete_trade(current_user.id, trade_id)
    return {"message": "거래가 삭제되었습니다.", "trade": trade_to_dict(deleted)}
