import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Union

import httpx

from src.common.config.settings import Settings, get_settings
from src.common.services.accounting.validation import normalize_symbol
from src.common.utils.exceptions import QuoteUnavailable, ValidationError
from src.common.utils.http_client import get_retry_client

logger = logging.getLogger(__name__)

CANDLE_DEFAULT_DAYS = 30
CANDLE_RESOLUTIONS = ("1", "5", "15", "30", "60", "D", "W", "M")


def _optional_float(value) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Quote:
    symbol: str
    current_price: float
    change: Optional[float] = None
    change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None


class QuoteService:
    """
    Finnhub REST 시세 조회 클라이언트.

    API 키, 기본 URL, 타임아웃은 생성 시 주입받으며 회계 로직에서 환경 변수를
    직접 읽지 않습니다. 여러 종목 조회는 종목별로 독립 실행되고, 한 종목의 실패가
    다른 종목 조회를 취소하지 않습니다.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 5.0,
        retries: int = 2,
        client_factory: Callable[..., httpx.AsyncClient] = get_retry_client,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.retries = retries
        self.client_factory = client_factory

    @classmethod
    def from_settings(cls, settings: Settings = None) -> "QuoteService":
        settings = settings or get_settings()
        return cls(
            api_key=settings.FINNHUB_API_KEY,
            base_url=settings.FINNHUB_BASE_URL,
            timeout=settings.QUOTE_TIMEOUT_SECONDS,
            retries=settings.QUOTE_RETRIES,
        )

    def _client(self) -> httpx.AsyncClient:
        return self.client_factory(base_url=self.base_url, timeout=self.timeout, retries=self.retries)

    async def _fetch_quote(self, client: httpx.AsyncClient, symbol: str) -> Quote:
        if not self.api_key:
            raise QuoteUnavailable(symbol, "FINNHUB_API_KEY is not configured")
        try:
            response = await asyncio.wait_for(
                client.get("/quote", params={"symbol": symbol, "token": self.api_key}),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except asyncio.TimeoutError:
            raise QuoteUnavailable(symbol, f"timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            raise QuoteUnavailable(symbol, str(e) or e.__class__.__name__)
        except ValueError as e:
            raise QuoteUnavailable(symbol, f"invalid response body: {e}")

        if not isinstance(data, dict):
            raise QuoteUnavailable(symbol, "invalid response body: expected a JSON object")
        try:
            current_price = float(data.get("c") or 0)
        except (TypeError, ValueError):
            raise QuoteUnavailable(symbol, f"invalid price in response: {data.get('c')!r}")
        # Finnhub은 잘못된 종목이나 장 마감 시 c=0을 반환한다
        if not math.isfinite(current_price) or current_price <= 0:
            raise QuoteUnavailable(symbol, "invalid symbol or market closed")

        return Quote(
            symbol=symbol,
            current_price=current_price,
            change=_optional_float(data.get("d")),
            change_percent=_optional_float(data.get("dp")),
            high=_optional_float(data.get("h")),
            low=_optional_float(data.get("l")),
            open=_optional_float(data.get("o")),
            previous_close=_optional_float(data.get("pc")),
        )

    async def get_quote(self, symbol: str) -> Quote:
        symbol = normalize_symbol(symbol)
        logger.debug(f"get_quote 호출: symbol={symbol}")
        async with self._client() as client:
            quote = await self._fetch_quote(client, symbol)
        logger.debug(f"현재가 조회: {symbol} - {quote.current_price}")
        return quote

    async def get_quotes(self, symbols: Iterable[str]) -> Dict[str, Union[Quote, QuoteUnavailable]]:
        """
        여러 종목의 현재가를 동시에 조회한다.

        Returns:
            {종목: Quote 또는 QuoteUnavailable}. 예외를 던지지 않고 종목별 결과로 돌려준다.
        """
        symbols = sorted({normalize_symbol(s) for s in symbols})
        if not symbols:
            return {}
        logger.debug(f"get_quotes 호출: {len(symbols)}개 종목")

        async with self._client() as client:
            results = await asyncio.gather(
                *(self._fetch_quote(client, symbol) for symbol in symbols),
                return_exceptions=True,
            )

        quotes = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, QuoteUnavailable):
                logger.warning(f"현재가 조회 실패: {result}")
                quotes[symbol] = result
            elif isinstance(result, Exception):
                logger.error(f"현재가 조회 중 예기치 못한 오류: {symbol} - {result}", exc_info=result)
                quotes[symbol] = QuoteUnavailable(symbol, str(result))
            else:
                quotes[symbol] = result
        return quotes

    async def search_symbols(self, query: str, limit: int = 10) -> List[dict]:
        """종목 코드/회사명 검색 (Finnhub /search 패스스루)"""
        query = (query or "").strip()
        if not query:
            return []
        if not self.api_key:
            raise QuoteUnavailable(query.upper(), "FINNHUB_API_KEY is not configured")
        logger.debug(f"search_symbols 호출: query={query}")
        try:
            async with self._client() as client:
                response = await client.get("/search", params={"q": query, "token": self.api_key})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise QuoteUnavailable(query.upper(), f"search failed: {e}")

        results = []
        for item in (data.get("result") or [])[:limit]:
            results.append({
                "symbol": item.get("symbol"),
                "description": item.get("description"),
                "type": item.get("type"),
            })
        return results

    async def _get_json(self, path: str, symbol: str, params: dict):
        if not self.api_key:
            raise QuoteUnavailable(symbol, "FINNHUB_API_KEY is not configured")
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(
                    client.get(path, params={**params, "token": self.api_key}),
                    timeout=self.timeout,
                )
                response.raise_for_status()
                return response.json()
        except asyncio.TimeoutError:
            raise QuoteUnavailable(symbol, f"{path} timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            raise QuoteUnavailable(symbol, f"{path} failed: {str(e) or e.__class__.__name__}")
        except ValueError as e:
            raise QuoteUnavailable(symbol, f"invalid response body from {path}: {e}")

    async def get_candles(self, symbol: str, resolution: str = "D",
                          start: Optional[int] = None, end: Optional[int] = None) -> dict:
        """
        차트용 과거 시세 (Finnhub /stock/candle 패스스루).

        start/end는 UNIX 초. 생략하면 최근 30일.
        데이터가 없으면 (s != "ok") QuoteUnavailable.
        """
        symbol = normalize_symbol(symbol)
        resolution = str(resolution).upper()
        if resolution not in CANDLE_RESOLUTIONS:
            raise ValidationError(f"Invalid resolution: {resolution!r}. Use one of {', '.join(CANDLE_RESOLUTIONS)}")
        end = int(end if end is not None else time.time())
        start = int(start if start is not None else end - CANDLE_DEFAULT_DAYS * 24 * 60 * 60)
        if start > end:
            raise ValidationError("Candle range start must not be after its end")
        logger.debug(f"get_candles 호출: symbol={symbol}, resolution={resolution}, from={start}, to={end}")

        data = await self._get_json(
            "/stock/candle", symbol,
            {"symbol": symbol, "resolution": resolution, "from": start, "to": end},
        )
        if not isinstance(data, dict) or data.get("s") != "ok":
            raise QuoteUnavailable(symbol, "no candle data for the requested range")
        return {
            "symbol": symbol,
            "timestamps": data.get("t") or [],
            "open": data.get("o") or [],
            "high": data.get("h") or [],
            "low": data.get("l") or [],
            "close": data.get("c") or [],
            "volume": data.get("v") or [],
        }

    async def get_recommendation(self, symbol: str) -> dict:
        """애널리스트 추천 집계 (Finnhub /stock/recommendation). 가장 최근 기간 기준."""
        symbol = normalize_symbol(symbol)
        logger.debug(f"get_recommendation 호출: symbol={symbol}")
        data = await self._get_json("/stock/recommendation", symbol, {"symbol": symbol})

        if not isinstance(data, list) or not data:
            return {
                "symbol": symbol, "recommendation": "HOLD", "strong_buy": 0, "buy": 0,
                "hold": 0, "sell": 0, "strong_sell": 0, "period": None,
            }

        latest = data[0]
        counts = {key: int(latest.get(key) or 0) for key in ("strongBuy", "buy", "hold", "sell", "strongSell")}
        return {
            "symbol": symbol,
            "recommendation": recommendation_label(**counts),
            "strong_buy": counts["strongBuy"],
            "buy": counts["buy"],
            "hold": counts["hold"],
            "sell": counts["sell"],
            "strong_sell": counts["strongSell"],
            "period": latest.get("period"),
        }

    async def get_company_profile(self, symbol: str) -> dict:
        """회사 개요 (Finnhub /stock/profile2 패스스루)"""
        symbol = normalize_symbol(symbol)
        logger.debug(f"get_company_profile 호출: symbol={symbol}")
        data = await self._get_json("/stock/profile2", symbol, {"symbol": symbol})
        if not isinstance(data, dict):
            data = {}
        return {
            "symbol": symbol,
            "name": data.get("name") or symbol,
            "country": data.get("country"),
            "currency": data.get("currency"),
            "exchange": data.get("exchange"),
            "ipo": data.get("ipo"),
            "market_capitalization": data.get("marketCapitalization"),
            "share_outstanding": data.get("shareOutstanding"),
            "industry": data.get("finnhubIndustry"),
            "weburl": data.get("weburl"),
            "logo": data.get("logo"),
        }


def recommendation_label(strongBuy: int = 0, buy: int = 0, hold: int = 0, sell: int = 0, strongSell: int = 0) -> str:
    """강력 매수/매도에 가중치 2를 준 점수가 0.6을 넘으면 BUY/SELL, 아니면 HOLD"""
    total = strongBuy + buy + hold + sell + strongSell
    if total <= 0:
        return "HOLD"
    if (strongBuy * 2 + buy) / total > 0.6:
        return "BUY"
    if (strongSell * 2 + sell) / total > 0.6:
        return "SELL"
    return "HOLD"


def get_quote_service() -> QuoteService:
    return QuoteService.from_settings()
