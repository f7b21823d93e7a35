"""
FIFO 원가 매칭

매도 수량을 가장 오래된 미소진 매수 로트부터 차례로 매칭하여
실현손익을 계산합니다. 거래는 항상 (trade_date, id) 오름차순으로 처리합니다.
"""
import logging
from typing import Iterable, List

from src.common.services.accounting.types import (
    Lot,
    LotConsumption,
    RealizedTrade,
    SellMatch,
    TradeRecord,
)
from src.common.utils.exceptions import DataIntegrityError

logger = logging.getLogger(__name__)


def chronological(trades: Iterable[TradeRecord]) -> List[TradeRecord]:
    """체결 시각 오름차순, 같은 시각이면 ID 오름차순으로 정렬한다."""
    return sorted(trades, key=lambda t: (t.trade_date, t.id if t.id is not None else 0))


def net_quantity(trades: Iterable[TradeRecord]) -> int:
    """매수 수량 합계 - 매도 수량 합계. 순서와 무관하다."""
    held = 0
    for trade in trades:
        if trade.is_buy:
            held += trade.quantity
        elif trade.is_sell:
            held -= trade.quantity
    return held


def match_sell(lots: List[Lot], quantity: int, price: float) -> SellMatch:
    """
    매도 한 건을 열린 로트에 FIFO로 매칭한다.

    lots의 remaining 값이 제자리에서 감소하므로, 호출자는 재생(replay) 중인
    로트 목록을 그대로 넘기면 된다. 로트가 부족하면 매칭 가능한 만큼만 매칭하고
    SellMatch.fully_matched가 False가 된다 (보유 수량 검증은 호출자 책임).
    """
    remaining_to_sell = quantity
    total_cost = 0.0
    consumed = []

    for lot in lots:
        if remaining_to_sell <= 0:
            break
        if lot.remaining <= 0:
            continue
        shares_to_use = min(remaining_to_sell, lot.remaining)
        total_cost += shares_to_use * lot.price
        lot.remaining -= shares_to_use
        remaining_to_sell -= shares_to_use
        consumed.append(LotConsumption(trade_id=lot.trade_id, quantity=shares_to_use, price=lot.price))

    matched_quantity = quantity - remaining_to_sell

    # 매칭된 주식이 없으면 NaN 전파를 막기 위해 0으로 처리
    if matched_quantity <= 0:
        return SellMatch(
            quantity=quantity,
            price=price,
            matched_quantity=0,
            matched_cost=0.0,
            average_buy_price=0.0,
            profit_loss=0.0,
            profit_loss_percentage=0.0,
            consumed=consumed,
        )

    average_buy_price = total_cost / matched_quantity
    profit_loss = (price - average_buy_price) * quantity
    cost_basis = average_buy_price * quantity
    profit_loss_percentage = (profit_loss / cost_basis) * 100 if cost_basis else 0.0

    return SellMatch(
        quantity=quantity,
        price=price,
        matched_quantity=matched_quantity,
        matched_cost=total_cost,
        average_buy_price=average_buy_price,
        profit_loss=profit_loss,
        profit_loss_percentage=profit_loss_percentage,
        consumed=consumed,
    )


def replay(trades: Iterable[TradeRecord]):
    """
    한 종목의 거래 기록을 시간순으로 재생한다.

    Returns:
        (open_lots, realized): 남은 매수 로트 목록과 매도별 실현손익 목록.

    Raises:
        DataIntegrityError: 매도 시점에 보유 로트가 부족한 경우.
    """
    lots: List[Lot] = []
    realized: List[RealizedTrade] = []

    for trade in chronological(trades):
        if trade.is_buy:
            lots.append(Lot(
                trade_id=trade.id,
                trade_date=trade.trade_date,
                price=trade.price,
                quantity=trade.quantity,
                remaining=trade.quantity,
            ))
            continue

        held = sum(lot.remaining for lot in lots)
        match = match_sell(lots, trade.quantity, trade.price)
        if not match.fully_matched:
            logger.error(
                f"데이터 무결성 위반: {trade.symbol} 매도(id={trade.id}) {trade.quantity}주 중 "
                f"{match.matched_quantity}주만 매칭됨 (user_id={trade.user_id})"
            )
            raise DataIntegrityError(
                f"Sell trade {trade.id} of {trade.quantity} {trade.symbol} exceeds holdings "
                f"(only {held} shares available)",
                trade_id=trade.id,
                symbol=trade.symbol,
                held=held,
                requested=trade.quantity,
            )
        lots = [lot for lot in lots if lot.remaining > 0]
        realized.append(RealizedTrade(
            trade=trade,
            profit_loss=match.profit_loss,
            profit_loss_percentage=match.profit_loss_percentage,
            average_buy_price=match.average_buy_price,
        ))

    return lots, realized


def open_lots(trades: Iterable[TradeRecord]) -> List[Lot]:
    """이전 매도로 소진되지 않은 매수 로트를 오래된 순서로 반환한다."""
    lots, _ = replay(trades)
    return lots


def compute_realized_pl(trades: Iterable[TradeRecord]) -> List[RealizedTrade]:
    """
    여러 종목이 섞인 거래 기록에서 매도별 FIFO 실현손익을 계산한다.

    결과는 매도 거래의 시간순이다.
    """
    by_symbol = {}
    for trade in trades:
        by_symbol.setdefault((trade.user_id, trade.symbol), []).append(trade)

    realized: List[RealizedTrade] = []
    for symbol_trades in by_symbol.values():
        _, symbol_realized = replay(symbol_trades)
        realized.extend(symbol_realized)

    realized.sort(key=lambda r: (r.trade.trade_date, r.trade.id if r.trade.id is not None else 0))
    return realized
