"""
performance.py
--------------

기간별 성과 지표 계산. 입력은 이미 조회된 거래 기록, 재계산된 실현손익,
현재 보유 현황, 그리고 종목별 현재가(또는 QuoteUnavailable)입니다.
외부 호출 없이 순수 함수로만 구성되어 있어 서비스 계층과 분리해 테스트할 수 있습니다.

실현손익은 요청 기간으로 제한되지만, 평가손익(unrealized)은 항상 전체 기간의
현재 보유분 기준입니다. 두 값의 기준이 다른 것은 의도된 동작입니다.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Union

from src.common.services.accounting.periods import month_bounds
from src.common.services.accounting.types import (
    MonthlyPerformance,
    PerformanceSnapshot,
    Position,
    PositionValuation,
    PriceStatus,
    RealizedTrade,
    TradeRecord,
)
from src.common.utils.exceptions import QuoteUnavailable

logger = logging.getLogger(__name__)

QuoteResult = Union[float, QuoteUnavailable]


def in_window(trade_date: datetime, start: Optional[datetime], end: datetime) -> bool:
    if start is not None and trade_date < start:
        return False
    return trade_date <= end


def summarize_realized(realized: Iterable[RealizedTrade]) -> Dict[str, object]:
    """매도 실현손익 목록으로 승률, 손익비 등 통계를 계산한다."""
    pnls = [r.profit_loss for r in realized]
    wins = [pnl for pnl in pnls if pnl > 0]
    losses = [pnl for pnl in pnls if pnl < 0]

    total_profit = sum(wins)
    total_loss = -sum(losses)  # 손실 절대값 합계
    sell_trades = len(pnls)

    if total_loss > 0:
        profit_factor = total_profit / total_loss
    elif total_profit > 0:
        profit_factor = None  # 손실 없이 이익만 있는 경우 (무한대)
    else:
        profit_factor = 0.0

    return {
        "sell_trades": sell_trades,
        "winning_trades": len(wins),
        "losing_trades": len(losses),
        "realized_profit": sum(pnls),
        "total_profit": total_profit,
        "total_loss": total_loss,
        "win_rate": (len(wins) / sell_trades * 100) if sell_trades > 0 else 0.0,
        "profit_factor": profit_factor,
        "average_profit": total_profit / len(wins) if wins else 0.0,
        "average_loss": total_loss / len(losses) if losses else 0.0,
        "best_trade": max(pnls) if pnls else 0.0,
        "worst_trade": min(pnls) if pnls else 0.0,
    }


def value_position(position: Position, quote: Optional[QuoteResult]) -> PositionValuation:
    """보유 종목 하나를 현재가로 평가한다. 현재가가 없으면 UNAVAILABLE로 표시한다."""
    if quote is None or isinstance(quote, Exception):
        return PositionValuation(
            symbol=position.symbol,
            quantity=position.quantity,
            average_price=position.average_price,
            total_cost=position.total_cost,
            current_price=None,
            current_value=None,
            unrealized_profit=None,
            unrealized_profit_percentage=None,
            price_status=PriceStatus.UNAVAILABLE,
        )

    current_price = float(quote)
    current_value = current_price * position.quantity
    unrealized = (current_price - position.average_price) * position.quantity
    percentage = (unrealized / position.total_cost * 100) if position.total_cost > 0 else 0.0
    return PositionValuation(
        symbol=position.symbol,
        quantity=position.quantity,
        average_price=position.average_price,
        total_cost=position.total_cost,
        current_price=current_price,
        current_value=current_value,
        unrealized_profit=unrealized,
        unrealized_profit_percentage=percentage,
        price_status=PriceStatus.LIVE,
    )


def value_positions(positions: Iterable[Position], quotes: Mapping[str, QuoteResult]) -> List[PositionValuation]:
    valuations = []
    for position in positions:
        quote = quotes.get(position.symbol)
        if quote is None or isinstance(quote, Exception):
            logger.warning(f"현재가 없음: {position.symbol}. 평가손익에서 제외합니다. ({quote})")
        valuations.append(value_position(position, quote))
    return valuations


def build_snapshot(
    period: str,
    start: Optional[datetime],
    end: datetime,
    trades: Iterable[TradeRecord],
    realized: Iterable[RealizedTrade],
    positions: Iterable[Position],
    quotes: Mapping[str, QuoteResult],
) -> PerformanceSnapshot:
    """
    기간 성과 스냅샷을 만든다.

    Args:
        period: 기간 이름 (표시용).
        start, end: 기간 경계 (naive UTC, start=None이면 전체 기간).
        trades: 사용자의 전체 거래 기록.
        realized: 전체 거래 기록에서 재계산한 매도별 실현손익.
        positions: 전체 기간 기준 현재 보유 종목.
        quotes: 종목별 현재가 또는 QuoteUnavailable.
    """
    window_trades = [t for t in trades if in_window(t.trade_date, start, end)]
    window_realized = [r for r in realized if in_window(r.trade.trade_date, start, end)]
    stats = summarize_realized(window_realized)

    period_invested = sum(t.quantity * t.price for t in window_trades if t.is_buy)

    valuations = value_positions(positions, quotes)
    live = [v for v in valuations if v.price_status == PriceStatus.LIVE]
    unavailable = [v.symbol for v in valuations if v.price_status == PriceStatus.UNAVAILABLE]

    total_invested = sum(v.total_cost for v in valuations)
    unrealized_profit = sum(v.unrealized_profit for v in live)
    total_value = sum(v.current_value for v in live)

    total_return = (stats["realized_profit"] / period_invested * 100) if period_invested > 0 else 0.0

    return PerformanceSnapshot(
        period=period,
        start=start,
        end=end,
        total_trades=len(window_trades),
        sell_trades=stats["sell_trades"],
        winning_trades=stats["winning_trades"],
        losing_trades=stats["losing_trades"],
        realized_profit=stats["realized_profit"],
        total_profit=stats["total_profit"],
        total_loss=stats["total_loss"],
        unrealized_profit=unrealized_profit,
        total_pnl=stats["realized_profit"] + unrealized_profit,
        win_rate=stats["win_rate"],
        total_value=total_value,
        total_invested=total_invested,
        period_invested=period_invested,
        total_return=total_return,
        profit_factor=stats["profit_factor"],
        average_profit=stats["average_profit"],
        average_loss=stats["average_loss"],
        best_trade=stats["best_trade"],
        worst_trade=stats["worst_trade"],
        positions=valuations,
        unavailable_symbols=unavailable,
    )


def monthly_performance(
    trades: Iterable[TradeRecord],
    realized: Iterable[RealizedTrade],
    now: datetime,
    months: int = 12,
    tz_name: str = "UTC",
) -> List[MonthlyPerformance]:
    """최근 months개 달력 월의 실현손익과 거래 건수 (오래된 달부터)."""
    trades = list(trades)
    realized = list(realized)
    result = []
    for months_ago in range(months - 1, -1, -1):
        start, end, label = month_bounds(now, months_ago, tz_name)
        month_trades = [t for t in trades if start <= t.trade_date < end]
        profit = sum(r.profit_loss for r in realized if start <= r.trade.trade_date < end)
        result.append(MonthlyPerformance(month=label, start=start, end=end, profit=profit, trades=len(month_trades)))
    return result


def top_performers(realized: Iterable[RealizedTrade], limit: int = 5) -> List[RealizedTrade]:
    winners = [r for r in realized if r.profit_loss > 0]
    return sorted(winners, key=lambda r: r.profit_loss, reverse=True)[:limit]


def worst_performers(realized: Iterable[RealizedTrade], limit: int = 5) -> List[RealizedTrade]:
    losers = [r for r in realized if r.profit_loss < 0]
    return sorted(losers, key=lambda r: r.profit_loss)[:limit]
