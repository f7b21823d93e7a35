"""
보유 현황 집계

거래 기록 전체를 종목별 Position으로 축약합니다. 평균 단가는 시간순 재생으로만
정확하게 계산되므로 항상 (trade_date, id) 순으로 정렬한 뒤 처리합니다.
"""
import logging
from typing import Dict, Iterable, List

from src.common.services.accounting.fifo_matcher import chronological, match_sell
from src.common.services.accounting.types import Lot, Position, TradeRecord
from src.common.utils.exceptions import DataIntegrityError, ValidationError

logger = logging.getLogger(__name__)

FIFO = "fifo"
AVERAGE = "average"
COST_BASIS_METHODS = (FIFO, AVERAGE)


def _apply_buy(position: Position, trade: TradeRecord):
    position.quantity += trade.quantity
    position.total_cost += trade.quantity * trade.price
    position.lots.append(Lot(
        trade_id=trade.id,
        trade_date=trade.trade_date,
        price=trade.price,
        quantity=trade.quantity,
        remaining=trade.quantity,
    ))


def _apply_sell(position: Position, trade: TradeRecord, method: str):
    if trade.quantity > position.quantity:
        logger.error(
            f"데이터 무결성 위반: {trade.symbol} 보유 {position.quantity}주에서 "
            f"{trade.quantity}주 매도 (trade_id={trade.id}, user_id={trade.user_id})"
        )
        raise DataIntegrityError(
            f"Negative holdings for {trade.symbol}: {position.quantity} held, "
            f"sell trade {trade.id} removes {trade.quantity}"
        )

    # 매도가가 아닌 매도 직전 원가로 총원가를 줄인다
    average_before_sell = position.average_price
    match = match_sell(position.lots, trade.quantity, trade.price)
    position.lots = [lot for lot in position.lots if lot.remaining > 0]
    position.quantity -= trade.quantity

    if method == FIFO:
        # matched_cost를 빼는 것과 같지만 부동소수 오차가 누적되지 않는다
        position.total_cost = sum(lot.remaining_cost for lot in position.lots)
        logger.debug(f"{trade.symbol} FIFO 매칭 원가 {match.matched_cost:.4f} 차감")
    else:
        position.total_cost -= average_before_sell * trade.quantity

    if position.quantity == 0:
        position.total_cost = 0.0


def aggregate_positions(trades: Iterable[TradeRecord], method: str = FIFO) -> Dict[str, Position]:
    """
    거래 기록을 종목별 Position으로 집계한다. 수량이 0인 종목도 포함된다.

    Args:
        trades: 한 사용자의 거래 기록 (순서 무관).
        method: 'fifo' 이면 매도 시 FIFO 매칭된 로트 원가를 차감하고,
            'average' 이면 매도 직전 평균 단가 x 매도 수량을 차감한다.

    Raises:
        DataIntegrityError: 어느 시점에서든 보유 수량이 음수가 되는 경우.
    """
    if method not in COST_BASIS_METHODS:
        raise ValidationError(f"Unknown cost basis method: {method}")

    positions: Dict[str, Position] = {}
    for trade in chronological(trades):
        position = positions.get(trade.symbol)
        if position is None:
            position = Position(symbol=trade.symbol, company_name=trade.company_name)
            positions[trade.symbol] = position

        if trade.is_buy:
            _apply_buy(position, trade)
        else:
            _apply_sell(position, trade, method)

    return positions


def active_positions(trades: Iterable[TradeRecord], method: str = FIFO) -> List[Position]:
    """보유 수량이 양수인 종목만 종목 코드 순으로 반환한다."""
    positions = aggregate_positions(trades, method)
    return sorted(
        (position for position in positions.values() if position.quantity > 0),
        key=lambda p: p.symbol,
    )
