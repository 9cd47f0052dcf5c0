from sqlalchemy import Column, Integer, Float, Boolean, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.core.database import Base
from backend.app.models.enums import MatchStatus

class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("tournament_id", "round", "match_number", name="uq_match_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    tournament = relationship("Tournament", back_populates="matches")

    # Bracket position: round 1 is played first, match_number runs across the whole bracket
    round = Column(Integer, nullable=False)
    match_number = Column(Integer, nullable=False)

    # Empty slot = TBD, or a permanent bye when is_bye is set
    player1_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    player2_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    winner_id = Column(Integer, ForeignKey("players.id"), nullable=True)

    player1_score = Column(Float, nullable=True)
    player2_score = Column(Float, nullable=True)

    status = Column(String, default=MatchStatus.PENDING, nullable=False)
    is_bye = Column(Boolean, default=False, nullable=False)

    completed_at = Column(DateTime(timezone=True), nullable=True)
