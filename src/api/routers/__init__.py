from .auth import router as auth_router
from .portfolio import router as portfolio_router
from .profile import router as profile_router
from .stocks import router as stocks_router
from .trades import router as trades_router
from .watchlist import router as watchlist_router
