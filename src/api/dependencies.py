from fastapi import Depends
from sqlalchemy.orm import Session

from src.common.database.db_connector import get_db
from src.common.services.portfolio_service import PortfolioService
from src.common.services.quote_service import QuoteService, get_quote_service
from src.common.services.trade_store import TradeStore


def get_trade_store(db: Session = Depends(get_db)) -> TradeStore:
    return TradeStore(db)


def get_portfolio_service(
    store: TradeStore = Depends(get_trade_store),
    quote_service: QuoteService = Depends(get_quote_service),
) -> PortfolioService:
    return PortfolioService(store, quote_service=quote_service)
