from sqlalchemy import Column, Integer, String, Float, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.core.database import Base
from backend.app.models.enums import TournamentStatus

class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default=TournamentStatus.PENDING, nullable=False)

    max_players = Column(Integer, nullable=False)
    prize_pool = Column(Float, default=0.0)

    # Set once at bracket generation, never recomputed
    total_rounds = Column(Integer, nullable=True)
    current_round = Column(Integer, nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    champion_id = Column(Integer, nullable=True) # Reference to the Player ID

    # Relationships
    players = relationship("Player", back_populates="tournament", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")
