import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.common.models.trade import Trade
from src.common.services.accounting.types import TradeAction, TradeRecord
from src.common.services.accounting.validation import normalize_symbol, parse_action, validate_price, validate_quantity
from src.common.utils.exceptions import TradeNotFound

logger = logging.getLogger(__name__)


def to_record(row: Trade) -> TradeRecord:
    """ORM 행 -> 불변 TradeRecord"""
    return TradeRecord(
        id=row.id,
        user_id=row.user_id,
        symbol=row.symbol,
        action=TradeAction(row.action),
        quantity=row.quantity,
        price=row.price,
        trade_date=row.trade_date,
        total_amount=row.total_amount,
        profit_loss=row.profit_loss or 0.0,
        profit_loss_percentage=row.profit_loss_percentage or 0.0,
        average_buy_price=row.average_buy_price,
        company_name=row.company_name,
        notes=row.notes,
    )


class TradeStore:
    """거래 기록 저장소. 요청 단위 DB 세션에 묶여 생성됩니다."""

    def __init__(self, db: Session):
        self.db = db

    def create_trade(self, trade: TradeRecord) -> TradeRecord:
        logger.debug(f"create_trade 호출: user_id={trade.user_id}, {trade.action} {trade.quantity} {trade.symbol} @ {trade.price}")
        symbol = normalize_symbol(trade.symbol)
        action = parse_action(trade.action)
        quantity = validate_quantity(trade.quantity)
        price = validate_price(trade.price)

        row = Trade(
            user_id=trade.user_id,
            symbol=symbol,
            company_name=trade.company_name or symbol,
            action=action.value,
            quantity=quantity,
            price=price,
            total_amount=quantity * price,
            trade_date=trade.trade_date or datetime.utcnow(),
            profit_loss=trade.profit_loss if action == TradeAction.SELL else 0.0,
            profit_loss_percentage=trade.profit_loss_percentage if action == TradeAction.SELL else 0.0,
            average_buy_price=trade.average_buy_price if action == TradeAction.SELL else None,
            notes=trade.notes,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"거래 기록 저장 실패: {e}", exc_info=True)
            raise
        logger.info(f"거래 기록 저장 완료: id={row.id}, user_id={row.user_id}, {row.action} {row.quantity} {row.symbol}")
        return to_record(row)

    def find_trades(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        action: Optional[TradeAction] = None,
    ) -> List[TradeRecord]:
        """사용자의 거래 기록을 체결 시각 오름차순으로 조회한다."""
        logger.debug(f"find_trades 호출: user_id={user_id}, symbol={symbol}, start={start}, end={end}, action={action}")
        query = self.db.query(Trade).filter(Trade.user_id == user_id)
        if symbol:
            query = query.filter(Trade.symbol == normalize_symbol(symbol))
        if start is not None:
            query = query.filter(Trade.trade_date >= start)
        if end is not None:
            query = query.filter(Trade.trade_date <= end)
        if action is not None:
            query = query.filter(Trade.action == parse_action(action).value)
        rows = query.order_by(Trade.trade_date.asc(), Trade.id.asc()).all()
        logger.debug(f"사용자({user_id})의 거래 기록 {len(rows)}건 조회됨.")
        return [to_record(row) for row in rows]

    def get_trade(self, trade_id: int, user_id: int) -> Optional[TradeRecord]:
        row = self.db.query(Trade).filter(Trade.id == trade_id, Trade.user_id == user_id).first()
        return to_record(row) if row else None

    def delete_trade(self, trade_id: int, user_id: int, repriced: Optional[Dict[int, Tuple[float, float, float]]] = None) -> None:
        """
        거래를 삭제하고, 재계산된 매도 손익을 같은 트랜잭션에서 갱신한다.

        Args:
            repriced: {매도 trade_id: (profit_loss, profit_loss_percentage, average_buy_price)}
        """
        logger.debug(f"delete_trade 호출: trade_id={trade_id}, user_id={user_id}")
        row = self.db.query(Trade).filter(Trade.id == trade_id, Trade.user_id == user_id).first()
        if not row:
            raise TradeNotFound(trade_id)
        try:
            self.db.delete(row)
            for sell_id, (profit_loss, percentage, average_buy_price) in (repriced or {}).items():
                sell = self.db.query(Trade).filter(Trade.id == sell_id, Trade.user_id == user_id).first()
                if sell is None:
                    continue
                sell.profit_loss = profit_loss
                sell.profit_loss_percentage = percentage
                sell.average_buy_price = average_buy_price
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"거래 삭제 실패: trade_id={trade_id}, error={e}", exc_info=True)
            raise
        logger.info(f"거래 삭제 완료: trade_id={trade_id}, 재계산된 매도 {len(repriced or {})}건")
