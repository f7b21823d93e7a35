from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routers import auth, portfolio, profile, stocks, trades, watchlist
from src.common.config.settings import get_settings
from src.common.database.db_connector import Base, engine
from src.common.models import User, Trade, Watchlist  # noqa: F401 (테이블 등록)
from src.common.utils.exceptions import (
    DataIntegrityError,
    InsufficientShares,
    PortfolioError,
    QuoteUnavailable,
    TradeNotFound,
    ValidationError,
)
from src.common.utils.logger import setup_logging

settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PaperTrade API",
    description="모의투자 포트폴리오 손익 계산 API",
)

# 오류 유형 -> HTTP 상태 코드
ERROR_STATUS = {
    ValidationError: 400,
    InsufficientShares: 400,
    TradeNotFound: 404,
    QuoteUnavailable: 502,
    DataIntegrityError: 500,
}


def error_response(exc: PortfolioError) -> JSONResponse:
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    body = {"error": exc.code, "detail": str(exc)}
    if isinstance(exc, InsufficientShares):
        body.update(symbol=exc.symbol, held=exc.held, requested=exc.requested)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    if isinstance(exc, DataIntegrityError):
        logger.error(f"데이터 무결성 오류: {request.method} {request.url.path} - {exc}")
    elif isinstance(exc, QuoteUnavailable):
        logger.warning(f"시세 조회 실패: {request.method} {request.url.path} - {exc}")
    else:
        logger.info(f"요청 거부: {request.method} {request.url.path} - {exc.code}: {exc}")
    return error_response(exc)


@app.on_event("startup")
def on_startup():
    # Ensure tables are created for all environments
    Base.metadata.create_all(bind=engine)
    logger.info(f"애플리케이션 시작: APP_ENV={settings.APP_ENV}, cost_basis={settings.COST_BASIS_METHOD}")

# --- Routers ---
app.include_router(auth.router, prefix="/api/v1")
app.include_router(trades.router, prefix="/api/v1")
app.include_router(portfolio.router, prefix="/api/v1")
app.include_router(profile.router, prefix="/api/v1")
app.include_router(watchlist.router, prefix="/api/v1")
app.include_router(stocks.router, prefix="/api/v1")

# --- Basic Endpoints ---
@app.get("/")
def read_root():
    return {"message": "API 서비스 정상 동작"}

@app.get("/health")
@app.get("/api/v1/health")
def health_check():
    """헬스체크 엔드포인트"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }
