from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.core.database import Base
from backend.app.models.enums import PlayerStatus

class Player(Base):
    __tablename__ = "players"
    __table_args__ = (
        # Usernames are stored lower-cased, so this is case-insensitive
        UniqueConstraint("tournament_id", "affiliate_username", name="uq_player_username_per_tournament"),
    )

    id = Column(Integer, primary_key=True, index=True)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())

    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    tournament = relationship("Tournament", back_populates="players")

    affiliate_username = Column(String, nullable=False)
    display_name = Column(String, nullable=False)

    seed = Column(Integer, nullable=True)
    status = Column(String, default=PlayerStatus.REGISTERED, nullable=False)

    # Highest score posted across all matches; only ever raised
    best_multiplier = Column(Float, nullable=True)
