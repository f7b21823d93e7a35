import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from src.common.config.settings import Settings, get_settings
from src.common.services.accounting import fifo_matcher, performance, position_aggregator
from src.common.services.accounting.periods import resolve_period
from src.common.services.accounting.types import (
    MonthlyPerformance,
    PerformanceSnapshot,
    Position,
    RealizedTrade,
    SellMatch,
    TradeAction,
    TradeRecord,
)
from src.common.services.accounting.validation import normalize_symbol, parse_action, validate_price, validate_quantity
from src.common.services.quote_service import QuoteService
from src.common.services.trade_store import TradeStore
from src.common.utils.exceptions import DataIntegrityError, InsufficientShares, QuoteUnavailable, TradeNotFound
from src.common.utils.locks import KeyedLock, trade_locks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeResult:
    trade: TradeRecord
    profit_loss: float
    match: Optional[SellMatch] = None


class PortfolioService:
    """
    포트폴리오 회계 엔진 진입점.

    요청마다 거래 기록 전체를 다시 읽어 보유 현황과 손익을 계산합니다 (캐시 없음).
    매도 생성과 거래 삭제는 (user_id, symbol) 단위로 직렬화되어
    보유 수량 확인과 기록 저장 사이에 다른 매도가 끼어들 수 없습니다.
    """

    def __init__(
        self,
        store: TradeStore,
        quote_service: Optional[QuoteService] = None,
        settings: Settings = None,
        locks: KeyedLock = None,
        clock: Callable[[], datetime] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.quote_service = quote_service
        self.locks = locks or trade_locks
        self.clock = clock or datetime.utcnow
        self.cost_basis_method = settings.COST_BASIS_METHOD
        self.tz_name = settings.TIMEZONE

    # ---------- positions / realized ----------
    def compute_positions(self, user_id: int) -> List[Position]:
        logger.debug(f"compute_positions 호출: user_id={user_id}")
        trades = self.store.find_trades(user_id)
        return position_aggregator.active_positions(trades, self.cost_basis_method)

    def compute_realized_pl(self, trades: List[TradeRecord]) -> List[RealizedTrade]:
        return fifo_matcher.compute_realized_pl(trades)

    # ---------- metrics ----------
    async def fetch_prices(self, symbols: List[str]) -> Dict[str, object]:
        """{종목: 현재가(float) 또는 QuoteUnavailable}"""
        if not symbols:
            return {}
        if self.quote_service is None:
            return {symbol: QuoteUnavailable(symbol, "no quote provider configured") for symbol in symbols}

        quotes = await self.quote_service.get_quotes(symbols)
        prices = {}
        for symbol in symbols:
            result = quotes.get(symbol)
            if result is None:
                prices[symbol] = QuoteUnavailable(symbol, "missing from provider response")
            elif isinstance(result, Exception):
                prices[symbol] = result
            else:
                prices[symbol] = result.current_price
        return prices

    async def compute_metrics(
        self,
        user_id: int,
        period: str = "all",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> PerformanceSnapshot:
        """
        기간 성과 스냅샷. 실현손익은 기간 내 매도만, 평가손익은 전체 기간의 현재 보유분 기준.
        """
        logger.debug(f"compute_metrics 호출: user_id={user_id}, period={period}")
        window_start, window_end = resolve_period(period, now=self.clock(), tz_name=self.tz_name, start=start, end=end)

        trades = self.store.find_trades(user_id)
        realized = fifo_matcher.compute_realized_pl(trades)
        positions = position_aggregator.active_positions(trades, self.cost_basis_method)

        prices = await self.fetch_prices([p.symbol for p in positions])
        snapshot = performance.build_snapshot(
            period=period.strip().lower(),
            start=window_start,
            end=window_end,
            trades=trades,
            realized=realized,
            positions=positions,
            quotes=prices,
        )
        logger.info(
            f"성과 계산 완료: user_id={user_id}, period={snapshot.period}, realized={snapshot.realized_profit:.2f}, "
            f"unrealized={snapshot.unrealized_profit:.2f}, unavailable={snapshot.unavailable_symbols}"
        )
        return snapshot

    def monthly_performance(self, user_id: int, months: int = 12) -> List[MonthlyPerformance]:
        trades = self.store.find_trades(user_id)
        realized = fifo_matcher.compute_realized_pl(trades)
        return performance.monthly_performance(trades, realized, now=self.clock(), months=months, tz_name=self.tz_name)

    def performers(self, user_id: int, limit: int = 5) -> Dict[str, List[RealizedTrade]]:
        realized = fifo_matcher.compute_realized_pl(self.store.find_trades(user_id))
        return {
            "top": performance.top_performers(realized, limit),
            "worst": performance.worst_performers(realized, limit),
        }

    # ---------- history ----------
    def trade_history(
        self,
        user_id: int,
        symbol: Optional[str] = None,
        period: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[TradeRecord]:
        """최신 거래부터 정렬된 거래 이력"""
        window_start, window_end = None, None
        if period or start is not None or end is not None:
            window_start, window_end = resolve_period(
                period or "custom", now=self.clock(), tz_name=self.tz_name, start=start, end=end
            )
        trades = self.store.find_trades(user_id, symbol=symbol, start=window_start, end=window_end)
        return list(reversed(trades))

    def trade_statistics(self, user_id: int, period: str = "all") -> Dict[str, object]:
        window_start, window_end = resolve_period(period, now=self.clock(), tz_name=self.tz_name)
        trades = self.store.find_trades(user_id)
        realized = [
            r for r in fifo_matcher.compute_realized_pl(trades)
            if performance.in_window(r.trade.trade_date, window_start, window_end)
        ]
        stats = performance.summarize_realized(realized)
        stats["total_trades"] = len([t for t in trades if performance.in_window(t.trade_date, window_start, window_end)])
        stats["period"] = period.strip().lower()
        return stats

    # ---------- trade creation ----------
    def record_trade(self, user_id: int, symbol: str, action, quantity: int, price: float,
                     company_name: str = None, notes: str = None) -> TradeResult:
        action = parse_action(action)
        if action == TradeAction.SELL:
            return self.record_sell(user_id, symbol, quantity, price, company_name=company_name, notes=notes)
        return self.record_buy(user_id, symbol, quantity, price, company_name=company_name, notes=notes)

    def record_buy(self, user_id: int, symbol: str, quantity: int, price: float,
                   company_name: str = None, notes: str = None) -> TradeResult:
        symbol = normalize_symbol(symbol)
        quantity = validate_quantity(quantity)
        price = validate_price(price)

        trade = self.store.create_trade(TradeRecord(
            id=None,
            user_id=user_id,
            symbol=symbol,
            action=TradeAction.BUY,
            quantity=quantity,
            price=price,
            trade_date=self.clock(),
            total_amount=quantity * price,
            company_name=company_name,
            notes=notes,
        ))
        logger.info(f"매수 기록 완료: user_id={user_id}, {quantity} {symbol} @ {price}")
        return TradeResult(trade=trade, profit_loss=0.0)

    def record_sell(self, user_id: int, symbol: str, quantity: int, price: float,
                    company_name: str = None, notes: str = None) -> TradeResult:
        """
        매도를 기록하고 FIFO 실현손익을 계산한다.

        Raises:
            ValidationError: 종목/수량/가격이 잘못된 경우 (저장 전).
            InsufficientShares: 순보유 수량이 매도 수량보다 적은 경우 (매칭 전, 저장 없음).
            DataIntegrityError: 저장된 거래 기록 자체가 불변식을 위반한 경우.
        """
        symbol = normalize_symbol(symbol)
        quantity = validate_quantity(quantity)
        price = validate_price(price)

        with self.locks.hold((user_id, symbol)):
            trades = self.store.find_trades(user_id, symbol=symbol)
            held = fifo_matcher.net_quantity(trades)
            if held < quantity:
                logger.info(f"매도 거부: user_id={user_id}, {symbol} 보유 {held}주 < 요청 {quantity}주")
                raise InsufficientShares(symbol, held, quantity)

            lots = fifo_matcher.open_lots(trades)
            match = fifo_matcher.match_sell(lots, quantity, price)
            if not match.fully_matched:
                logger.error(f"데이터 무결성 위반: {symbol} 순보유 {held}주이나 매칭 가능한 로트는 {match.matched_quantity}주")
                raise DataIntegrityError(
                    f"Open lots for {symbol} cover {match.matched_quantity} shares but net holdings are {held}"
                )

            trade = self.store.create_trade(TradeRecord(
                id=None,
                user_id=user_id,
                symbol=symbol,
                action=TradeAction.SELL,
                quantity=quantity,
                price=price,
                trade_date=self.clock(),
                total_amount=quantity * price,
                profit_loss=match.profit_loss,
                profit_loss_percentage=match.profit_loss_percentage,
                average_buy_price=match.average_buy_price,
                company_name=company_name,
                notes=notes,
            ))

        logger.info(f"매도 기록 완료: user_id={user_id}, {quantity} {symbol} @ {price}, profit_loss={match.profit_loss:.2f}")
        return TradeResult(trade=trade, profit_loss=match.profit_loss, match=match)

    # ---------- deletion ----------
    def delete_trade(self, user_id: int, trade_id: int) -> TradeRecord:
        """
        거래를 삭제하고 같은 종목의 이후 매도 실현손익을 FIFO로 다시 계산한다.

        삭제 후 어떤 매도라도 보유 수량을 초과하게 되면 삭제를 거부한다 (InsufficientShares).
        """
        target = self.store.get_trade(trade_id, user_id)
        if target is None:
            raise TradeNotFound(trade_id)

        with self.locks.hold((user_id, target.symbol)):
            trades = self.store.find_trades(user_id, symbol=target.symbol)
            if not any(t.id == trade_id for t in trades):
                raise TradeNotFound(trade_id)

            # 기존 기록이 이미 깨져 있다면 삭제 거부가 아니라 무결성 오류로 드러나야 한다
            fifo_matcher.replay(trades)

            remaining = [t for t in trades if t.id != trade_id]
            try:
                _, realized = fifo_matcher.replay(remaining)
            except DataIntegrityError as e:
                # 삭제 후 처음으로 보유 수량을 초과하게 되는 매도 기준으로 보고한다
                logger.info(
                    f"거래 삭제 거부: trade_id={trade_id}, 매도(id={e.trade_id}) {e.requested}주 > "
                    f"당시 보유 {e.held}주 ({target.symbol})"
                )
                raise InsufficientShares(
                    target.symbol, e.held, e.requested,
                    message=f"Cannot delete trade {trade_id}: sell {e.trade_id} of {e.requested} "
                            f"{target.symbol} would exceed the {e.held} shares held at that time",
                )

            repriced = {}
            for r in realized:
                if (r.profit_loss != r.trade.profit_loss
                        or r.profit_loss_percentage != r.trade.profit_loss_percentage
                        or r.average_buy_price != r.trade.average_buy_price):
                    repriced[r.trade.id] = (r.profit_loss, r.profit_loss_percentage, r.average_buy_price)

            self.store.delete_trade(trade_id, user_id, repriced=repriced)

        logger.info(f"거래 삭제 완료: user_id={user_id}, trade_id={trade_id}, 재계산된 매도 {len(repriced)}건")
        return target
