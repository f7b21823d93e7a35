from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

class WatchListItem(BaseModel):
    symbol: str
    name: Optional[str] = None

class WatchlistEntry(BaseModel):
    symbol: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    current_price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    price_status: str = "UNAVAILABLE"

class WatchlistResponse(BaseModel):
    watchlist: List[WatchlistEntry]
