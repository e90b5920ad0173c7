import enum

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, ForeignKey, Float, JSON,
    Enum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from signal_engine.database.connection import Base
from signal_engine.utils.datetime import utcnow


class SourceType(enum.Enum):
    FILING = "filing"
    PRESS_RELEASE = "press_release"
    NEWS = "news"
    SOCIAL = "social"
    ANALYST = "analyst"


class SourceTier(enum.Enum):
    OFFICIAL = "official"
    PREMIUM = "premium"
    STANDARD = "standard"
    SOCIAL = "social"
    UNKNOWN = "unknown"


class EventCategory(enum.Enum):
    GUIDANCE_CHANGE = "guidance_change"
    EARNINGS_BEAT_MISS = "earnings_beat_miss"
    REGULATORY_LEGAL = "regulatory_legal"
    MERGER_ACQUISITION = "merger_acquisition"
    RECALL = "recall"
    LEADERSHIP_CHANGE = "leadership_change"
    LAYOFFS = "layoffs"
    MACRO_SHOCK = "macro_shock"
    CONTRACT_WIN = "contract_win"
    DIVIDEND_BUYBACK = "dividend_buyback"
    PRODUCT_LAUNCH = "product_launch"
    ANALYST_RATING = "analyst_rating"
    EARNINGS_CALENDAR = "earnings_calendar"
    UNKNOWN = "unknown"


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        UniqueConstraint("ticker", "source_url", name="uq_article_ticker_url"),
        Index("ix_article_ticker_published", "ticker", "published_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ticker = Column(String(16), nullable=False, index=True)

    # Content
    headline = Column(String, nullable=False)
    summary = Column(Text, nullable=True)
    source_url = Column(String, nullable=True)
    publisher = Column(String, nullable=True)

    # Classification
    source_type = Column(Enum(SourceType), nullable=False, default=SourceType.NEWS)
    source_tier = Column(Enum(SourceTier), nullable=False, default=SourceTier.UNKNOWN)
    event_category = Column(Enum(EventCategory), nullable=False, default=EventCategory.UNKNOWN)
    cluster_id = Column(String, nullable=True, index=True)

    # Timestamps (naive UTC)
    published_at = Column(DateTime, nullable=False)
    ingested_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    signal = relationship("Signal", back_populates="article", uselist=False, cascade="all, delete-orphan")
    impacts = relationship("Impact", back_populates="article", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Article(id={self.id}, ticker='{self.ticker}', headline='{self.headline[:50]}')>"


class Signal(Base):
    __tablename__ = "signals"

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, unique=True)

    # Keyword scoring
    sentiment = Column(Integer, nullable=False)  # -1, 0, +1
    magnitude = Column(Integer, nullable=False)  # 1..3
    confidence = Column(Float, nullable=False)  # 0..1, includes consensus bonus
    reasoning = Column(Text, nullable=True)
    matched_keywords = Column(JSON, nullable=True)

    # Consensus
    source_count = Column(Integer, nullable=False, default=1)
    stance_agreement = Column(Float, nullable=False, default=1.0)
    consensus_factor = Column(Float, nullable=False, default=0.1)

    analyzed_at = Column(DateTime, nullable=False, default=utcnow)

    article = relationship("Article", back_populates="signal")

    def __repr__(self):
        return (
            f"<Signal(article_id={self.article_id}, sentiment={self.sentiment}, "
            f"magnitude={self.magnitude}, confidence={self.confidence:.2f})>"
        )
