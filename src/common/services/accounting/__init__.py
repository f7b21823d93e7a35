from .fifo_matcher import compute_realized_pl, match_sell, net_quantity, open_lots, replay
from .position_aggregator import active_positions, aggregate_positions
from .periods import resolve_period
from .performance import build_snapshot, monthly_performance, top_performers, worst_performers
from .types import (
    Lot,
    MonthlyPerformance,
    PerformanceSnapshot,
    Position,
    PositionValuation,
    PriceStatus,
    RealizedTrade,
    SellMatch,
    TradeAction,
    TradeRecord,
)

__all__ = [
    "compute_realized_pl",
    "match_sell",
    "net_quantity",
    "open_lots",
    "replay",
    "active_positions",
    "aggregate_positions",
    "resolve_period",
    "build_snapshot",
    "monthly_performance",
    "top_performers",
    "worst_performers",
    "Lot",
    "MonthlyPerformance",
    "PerformanceSnapshot",
    "Position",
    "PositionValuation",
    "PriceStatus",
    "RealizedTrade",
    "SellMatch",
    "TradeAction",
    "TradeRecord",
]
