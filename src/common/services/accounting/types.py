"""
회계 엔진이 주고받는 값 객체 정의 파일입니다.

ORM 모델(src.common.models.trade.Trade)은 저장소 밖으로 나가지 않고,
엔진은 항상 불변 TradeRecord를 입력으로 받습니다.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class PriceStatus(str, Enum):
    LIVE = "LIVE"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class TradeRecord:
    """
    저장된 거래 한 건.

    Attributes:
        id (int): 거래 ID. 같은 시각의 거래는 ID 순서로 정렬됩니다.
        user_id (int): 소유자 ID (엔진에서는 불투명한 값).
        symbol (str): 대문자 종목 코드.
        action (TradeAction): BUY 또는 SELL.
        quantity (int): 체결 수량 (양의 정수).
        price (float): 주당 체결 가격.
        trade_date (datetime): 체결 시각 (naive UTC).
        profit_loss (float): 매도 실현손익, 매수는 0.
        profit_loss_percentage (float): 매칭 원가 대비 실현손익률.
        average_buy_price (float): 매도 시 FIFO 매칭된 평균 매수가.
    """
    id: Optional[int]
    user_id: int
    symbol: str
    action: TradeAction
    quantity: int
    price: float
    trade_date: datetime
    total_amount: float = 0.0
    profit_loss: float = 0.0
    profit_loss_percentage: float = 0.0
    average_buy_price: Optional[float] = None
    company_name: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_buy(self) -> bool:
        return self.action == TradeAction.BUY

    @property
    def is_sell(self) -> bool:
        return self.action == TradeAction.SELL


@dataclass
class Lot:
    """아직 매도로 소진되지 않은 매수 로트"""
    trade_id: Optional[int]
    trade_date: datetime
    price: float
    quantity: int
    remaining: int

    @property
    def remaining_cost(self) -> float:
        return self.remaining * self.price


@dataclass(frozen=True)
class LotConsumption:
    trade_id: Optional[int]
    quantity: int
    price: float


@dataclass(frozen=True)
class SellMatch:
    """매도 한 건을 FIFO로 매칭한 결과"""
    quantity: int
    price: float
    matched_quantity: int
    matched_cost: float
    average_buy_price: float
    profit_loss: float
    profit_loss_percentage: float
    consumed: List[LotConsumption] = field(default_factory=list)

    @property
    def fully_matched(self) -> bool:
        return self.matched_quantity == self.quantity


@dataclass(frozen=True)
class RealizedTrade:
    trade: TradeRecord
    profit_loss: float
    profit_loss_percentage: float
    average_buy_price: float


@dataclass
class Position:
    """(사용자, 종목) 단위의 현재 보유 현황. 거래 기록에서 매번 재계산됩니다."""
    symbol: str
    quantity: int = 0
    total_cost: float = 0.0
    company_name: Optional[str] = None
    lots: List[Lot] = field(default_factory=list)

    @property
    def average_price(self) -> float:
        if self.quantity > 0:
            return self.total_cost / self.quantity
        return 0.0


@dataclass(frozen=True)
class PositionValuation:
    symbol: str
    quantity: int
    average_price: float
    total_cost: float
    current_price: Optional[float]
    current_value: Optional[float]
    unrealized_profit: Optional[float]
    unrealized_profit_percentage: Optional[float]
    price_status: PriceStatus


@dataclass(frozen=True)
class PerformanceSnapshot:
    period: str
    start: Optional[datetime]
    end: datetime
    total_trades: int
    sell_trades: int
    winning_trades: int
    losing_trades: int
    realized_profit: float
    total_profit: float
    total_loss: float
    unrealized_profit: float
    total_pnl: float
    win_rate: float
    total_value: float
    total_invested: float
    period_invested: float
    total_return: float
    profit_factor: Optional[float]
    average_profit: float
    average_loss: float
    best_trade: float
    worst_trade: float
    positions: List[PositionValuation] = field(default_factory=list)
    unavailable_symbols: List[str] = field(default_factory=list)

    @property
    def quotes_complete(self) -> bool:
        return not self.unavailable_symbols


@dataclass(frozen=True)
class MonthlyPerformance:
    month: str
    start: datetime
    end: datetime
    profit: float
    trades: int
