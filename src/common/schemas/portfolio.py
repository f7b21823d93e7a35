from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class PositionRead(BaseModel):
    symbol: str
    company_name: Optional[str] = None
    quantity: int
    average_price: float
    total_cost: float

class PositionValuationRead(BaseModel):
    symbol: str
    quantity: int
    average_price: float
    total_cost: float
    current_price: Optional[float] = None
    current_value: Optional[float] = None
    unrealized_profit: Optional[float] = None
    unrealized_profit_percentage: Optional[float] = None
    price_status: str

    class Config:
        from_attributes = True

class PerformanceSnapshotRead(BaseModel):
    period: str
    start: Optional[datetime] = None
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
    profit_factor: Optional[float] = None  # 손실 없이 이익만 있으면 None (무한대)
    average_profit: float
    average_loss: float
    best_trade: float
    worst_trade: float
    quotes_complete: bool
    unavailable_symbols: List[str]
    positions: List[PositionValuationRead]

    class Config:
        from_attributes = True

class MonthlyPerformanceRead(BaseModel):
    month: str
    start: datetime
    end: datetime
    profit: float
    trades: int

    class Config:
        from_attributes = True

class PerformerRead(BaseModel):
    trade_id: int
    symbol: str
    company_name: Optional[str] = None
    quantity: int
    price: float
    trade_date: datetime
    profit_loss: float
    profit_loss_percentage: float
    average_buy_price: float

class PerformersResponse(BaseModel):
    top: List[PerformerRead]
    worst: List[PerformerRead]
