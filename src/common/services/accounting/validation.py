import math
import re

from src.common.services.accounting.types import TradeAction
from src.common.utils.exceptions import ValidationError

SYMBOL_PATTERN = re.compile(r"^[A-Z][A-Z0-9.\-]{0,14}$")


def normalize_symbol(symbol) -> str:
    """공백을 제거하고 대문자로 변환한 종목 코드를 반환한다."""
    if not isinstance(symbol, str):
        raise ValidationError("Symbol must be a string")
    normalized = symbol.strip().upper()
    if not SYMBOL_PATTERN.match(normalized):
        raise ValidationError(f"Invalid symbol: {symbol!r}")
    return normalized


def validate_quantity(quantity) -> int:
    # bool은 int의 하위 타입이므로 먼저 걸러낸다
    if isinstance(quantity, bool):
        raise ValidationError("Quantity must be a positive integer")
    if isinstance(quantity, float):
        if not quantity.is_integer():
            raise ValidationError(f"Quantity must be a whole number of shares: {quantity}")
        quantity = int(quantity)
    if not isinstance(quantity, int):
        raise ValidationError("Quantity must be a positive integer")
    if quantity <= 0:
        raise ValidationError(f"Quantity must be positive: {quantity}")
    return quantity


def validate_price(price) -> float:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ValidationError("Price must be a positive number")
    price = float(price)
    if math.isnan(price) or math.isinf(price) or price <= 0:
        raise ValidationError(f"Price must be a positive number: {price}")
    return price


def parse_action(action) -> TradeAction:
    if isinstance(action, TradeAction):
        return action
    if not isinstance(action, str):
        raise ValidationError("Action must be BUY or SELL")
    try:
        return TradeAction(action.strip().upper())
    except ValueError:
        raise ValidationError(f"Action must be BUY or SELL: {action!r}")
