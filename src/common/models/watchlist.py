from sqlalchemy import Column, Integer, String, DateTime, func
from src.common.database.db_connector import Base


class Watchlist(Base):
    __tablename__ = 'watch_list'
    user_id = Column(Integer, primary_key=True)
    symbol = Column(String(20), primary_key=True)
    name = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
