from .portfolio import MonthlyPerformanceRead, PerformanceSnapshotRead, PerformersResponse, PositionRead
from .trade import SimulatedTradeItem, SimulatedTradeResult, TradeHistoryResponse, TradeResponse, TradeStatistics
from .user import PasswordChange, UserCreate, UserRead, UserLogin, UserUpdate, Token
from .watchlist import WatchListItem, WatchlistEntry, WatchlistResponse
