from pydantic import BaseModel, Field
from typing import Optional, Literal, List
from datetime import datetime

class SimulatedTradeItem(BaseModel):
    symbol: str
    action: Literal["BUY", "SELL", "buy", "sell"]
    quantity: int
    price: Optional[float] = None  # 없으면 현재가로 체결
    company_name: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=255)

class TradeResponse(BaseModel):
    id: int
    symbol: str
    company_name: Optional[str] = None
    action: str
    quantity: int
    price: float
    total_amount: float
    trade_date: datetime
    profit_loss: float = 0.0
    profit_loss_percentage: float = 0.0
    average_buy_price: Optional[float] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class SimulatedTradeResult(BaseModel):
    message: str
    trade: TradeResponse
    profit_loss: float

class TradeStatistics(BaseModel):
    period: str
    total_trades: int
    sell_trades: int
    winning_trades: int
    losing_trades: int
    realized_profit: float
    total_profit: float
    total_loss: float
    win_rate: float
    profit_factor: Optional[float] = None
    average_profit: float
    average_loss: float
    best_trade: float
    worst_trade: float

class TradeHistoryResponse(BaseModel):
    trades: List[TradeResponse]
    count: int
