from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, CheckConstraint, func
from sqlalchemy.orm import relationship

from src.common.database.db_connector import Base


class Trade(Base):
    __tablename__ = 'trades'
    __table_args__ = (
        Index('ix_trades_user_symbol_date', 'user_id', 'symbol', 'trade_date'),
        CheckConstraint("action IN ('BUY', 'SELL')", name='ck_trades_action'),
        CheckConstraint('quantity > 0', name='ck_trades_quantity_positive'),
        CheckConstraint('price > 0', name='ck_trades_price_positive'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('app_users.id'), nullable=False)
    symbol = Column(String(20), nullable=False)
    company_name = Column(String(100), nullable=True)
    action = Column(String(4), nullable=False)  # 'BUY' or 'SELL'
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    trade_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    profit_loss = Column(Float, default=0.0, nullable=False)  # 매도 시 FIFO 실현손익
    profit_loss_percentage = Column(Float, default=0.0, nullable=False)
    average_buy_price = Column(Float, nullable=True)  # 매도 시 매칭된 평균 매수가
    notes = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="trades")

    def __repr__(self):
        return f"<Trade(id={self.id}, user_id={self.user_id}, {self.action} {self.quantity} {self.symbol} @ {self.price})>"
