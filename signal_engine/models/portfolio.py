import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from signal_engine.database.connection import Base


class RiskProfile(enum.Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class HoldingIntent(enum.Enum):
    TRADE = "trade"
    ACCUMULATE = "accumulate"
    INCOME = "income"
    HOLD = "hold"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, unique=True, index=True)
    risk_profile = Column(Enum(RiskProfile), nullable=False, default=RiskProfile.BALANCED)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<UserProfile(user_id='{self.user_id}', risk_profile={self.risk_profile.value})>"


class Holding(Base):
    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uq_holding_user_ticker"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    ticker = Column(String(16), nullable=False, index=True)

    # Position
    shares = Column(Numeric(20, 8), nullable=False)
    cost_basis = Column(Numeric(20, 8), nullable=True)  # per share
    acquired_at = Column(DateTime, nullable=True)
    intent = Column(Enum(HoldingIntent), nullable=False, default=HoldingIntent.HOLD)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    impacts = relationship("Impact", back_populates="holding")

    def __repr__(self):
        return f"<Holding(user_id='{self.user_id}', ticker='{self.ticker}', shares={self.shares})>"
