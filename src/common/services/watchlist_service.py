from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import logging

from src.common.models.watchlist import Watchlist
from src.common.services.accounting.validation import normalize_symbol

logger = logging.getLogger(__name__)


class WatchlistService:
    def get_watchlist(self, db: Session, user_id: int) -> List[Watchlist]:
        logger.debug(f"get_watchlist 호출: user_id={user_id}")
        return db.query(Watchlist).filter(Watchlist.user_id == user_id).order_by(Watchlist.created_at.asc()).all()

    def add_symbol(self, db: Session, user_id: int, symbol: str, name: Optional[str] = None) -> bool:
        """관심 종목 추가. 새로 추가되면 True, 이미 있으면 False"""
        symbol = normalize_symbol(symbol)
        logger.debug(f"관심 종목 추가 시도: user_id={user_id}, symbol={symbol}")
        exists = db.query(Watchlist).filter(Watchlist.user_id == user_id, Watchlist.symbol == symbol).first()
        if exists:
            logger.info(f"관심 종목 이미 존재: user_id={user_id}, symbol={symbol}")
            return False
        try:
            db.add(Watchlist(user_id=user_id, symbol=symbol, name=name or symbol))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"관심 종목 추가 실패: user_id={user_id}, symbol={symbol}, error={e}", exc_info=True)
            raise
        logger.info(f"관심 종목 추가 성공: user_id={user_id}, symbol={symbol}")
        return True

    def remove_symbol(self, db: Session, user_id: int, symbol: str) -> bool:
        """관심 종목 제거. 제거되면 True, 목록에 없으면 False"""
        symbol = normalize_symbol(symbol)
        logger.debug(f"관심 종목 제거 시도: user_id={user_id}, symbol={symbol}")
        row = db.query(Watchlist).filter(Watchlist.user_id == user_id, Watchlist.symbol == symbol).first()
        if not row:
            logger.info(f"관심 목록에 없는 종목: user_id={user_id}, symbol={symbol}")
            return False
        try:
            db.delete(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"관심 종목 제거 실패: user_id={user_id}, symbol={symbol}, error={e}", exc_info=True)
            raise
        logger.info(f"관심 종목 제거 성공: user_id={user_id}, symbol={symbol}")
        return True


def get_watchlist_service():
    return WatchlistService()
