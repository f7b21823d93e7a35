from .user import User
from .trade import Trade
from .watchlist import Watchlist

__all__ = [
    "User",
    "Trade",
    "Watchlist",
]
