class PortfolioError(Exception):
    """포트폴리오 회계 엔진에서 발생하는 모든 오류의 기본 클래스"""
    code = "portfolio_error"


class ValidationError(PortfolioError):
    """종목 코드, 수량, 가격, 기간 등 입력값이 잘못되었을 때 발생하는 오류"""
    code = "validation_error"


class InsufficientShares(PortfolioError):
    """보유 수량보다 많은 수량을 매도하려 할 때 발생하는 오류"""
    code = "insufficient_shares"

    def __init__(self, symbol: str, held: int, requested: int, message: str = None):
        self.symbol = symbol
        self.held = held
        self.requested = requested
        super().__init__(message or f"Insufficient shares. You own {held} shares of {symbol}, requested {requested}")


class TradeNotFound(PortfolioError):
    """거래 기록이 없거나 다른 사용자의 거래일 때 발생하는 오류"""
    code = "trade_not_found"

    def __init__(self, trade_id: int):
        self.trade_id = trade_id
        super().__init__(f"Trade {trade_id} not found")


class QuoteUnavailable(PortfolioError):
    """시세 제공자에서 특정 종목의 현재가를 가져오지 못했을 때 발생하는 오류"""
    code = "quote_unavailable"

    def __init__(self, symbol: str, reason: str = None):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"[{symbol}] {reason}" if reason else f"[{symbol}] quote unavailable")


class DataIntegrityError(PortfolioError):
    """저장된 거래 기록이 회계 불변식을 위반할 때 발생하는 오류 (음수 보유 수량 등)"""
    code = "data_integrity_error"

    def __init__(self, message: str, trade_id: int = None, symbol: str = None,
                 held: int = None, requested: int = None):
        # 보유 로트가 부족했던 매도 정보 (알 수 있는 경우에만)
        self.trade_id = trade_id
        self.symbol = symbol
        self.held = held
        self.requested = requested
        super().__init__(message)


class UserAlreadyExistsException(Exception):
    """사용자가 이미 존재할 때 발생하는 오류"""
    pass


class InvalidCredentialsException(Exception):
    """인증 정보가 유효하지 않을 때 발생하는 오류"""
    pass
