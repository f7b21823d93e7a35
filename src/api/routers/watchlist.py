# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from src.api.auth.jwt_handler import get_current_active_user
from src.common.database.db_connector import get_db
from src.common.models.user import User
from src.common.schemas.watchlist import WatchListItem, WatchlistResponse
from src.common.services.quote_service import QuoteService, get_quote_service
from src.common.services.watchlist_service import WatchlistService, get_watchlist_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

@router.get("", response_model=WatchlistResponse, tags=["watchlist"])
async def get_watchlist(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    watchlist_service: WatchlistService = Depends(get_watchlist_service),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """관심 종목과 현재가. 시세를 못 가져온 종목은 UNAVAILABLE로 표시된다."""
    rows = watchlist_service.get_watchlist(db, current_user.id)
    quotes = await quote_service.get_quotes([row.symbol for row in rows])

    entries = []
    for row in rows:
        entry = {"symbol": row.symbol, "name": row.name, "created_at": row.created_at}
        quote = quotes.get(row.symbol)
        if quote is not None and not isinstance(quote, Exception):
            entry.update(
                current_price=quote.current_price,
                change=quote.change,
                change_percent=quote.change_percent,
                price_status="LIVE",
            )
        entries.append(entry)
    logger.debug(f"관심 종목 조회 성공: user_id={current_user.id}, {len(entries)}개 종목.")
    return {"watchlist": entries}

@router.post("/add", tags=["watchlist"])
def add_to_watchlist(
    item: WatchListItem,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    watchlist_service: WatchlistService = Depends(get_watchlist_service),
):
    if not watchlist_service.add_symbol(db, current_user.id, item.symbol, name=item.name):
        return {"message": "이미 관심 목록에 있는 종목입니다.", "added": False}
    return {"message": "종목이 관심 목록에 추가되었습니다.", "added": True}

@router.post("/remove", tags=["watchlist"])
def remove_from_watchlist(
    item: WatchListItem,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    watchlist_service: WatchlistService = Depends(get_watchlist_service),
):
    if not watchlist_service.remove_symbol(db, current_user.id, item.symbol):
        return {"message": "관심 목록에 없는 종목입니다.", "removed": False}
    return {"message": "종목이 관심 목록에서 제거되었습니다.", "removed": True}
