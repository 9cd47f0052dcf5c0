from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from backend.app.core.database import Base

class WinnerLedger(Base):
    """
    Cross-tournament win counter, keyed by affiliate username.
    A row is created on a player's first championship and incremented after that.
    """
    __tablename__ = "winners_ledger"

    username = Column(String, primary_key=True, index=True)
    win_count = Column(Integer, default=0, nullable=False)

    last_tournament_id = Column(Integer, nullable=True) # Reference to the Tournament ID
    last_won_at = Column(DateTime(timezone=True), server_default=func.now())
