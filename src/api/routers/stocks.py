# 각 엔드포인트에 tags를 명시적으로 지정해야 Swagger UI에서 그룹화가 100% 보장됩니다.
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, Query
import logging

from src.api.auth.jwt_handler import get_current_active_user
from src.common.models.user import User
from src.common.services.quote_service import QuoteService, get_quote_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stocks", tags=["stocks"])

@router.get("/quote/{symbol}", tags=["stocks"])
async def get_stock_quote(
    symbol: str,
    current_user: User = Depends(get_current_active_user),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """종목 현재가 조회. 시세 제공자 실패 시 502"""
    quote = await quote_service.get_quote(symbol)
    return asdict(quote)

@router.get("/search", tags=["stocks"])
async def search_stocks(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """종목 코드/회사명 검색"""
    results = await quote_service.search_symbols(q, limit=limit)
    return {"results": results}

@router.get("/candle/{symbol}", tags=["stocks"])
async def get_stock_candles(
    symbol: str,
    resolution: str = "D",
    start: Optional[int] = Query(None, alias="from", ge=0),
    end: Optional[int] = Query(None, alias="to", ge=0),
    current_user: User = Depends(get_current_active_user),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """차트용 과거 시세. from/to는 UNIX 초, 생략하면 최근 30일"""
    return await quote_service.get_candles(symbol, resolution=resolution, start=start, end=end)

@router.get("/recommendation/{symbol}", tags=["stocks"])
async def get_stock_recommendation(
    symbol: str,
    current_user: User = Depends(get_current_active_user),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """애널리스트 추천 (BUY/HOLD/SELL)"""
    return await quote_service.get_recommendation(symbol)

@router.get("/profile/{symbol}", tags=["stocks"])
async def get_stock_profile(
    symbol: str,
    current_user: User = Depends(get_current_active_user),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """회사 개요"""
    return await quote_service.get_company_profile(symbol)
