"""
Shared fixtures: in-memory SQLite, explicit settings and row factories.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signal_engine.core.config import Settings
from signal_engine.database.connection import Base, build_engine
from signal_engine.models import (
    Article, Signal, Holding, UserProfile, Impact,
    EventCategory, HoldingIntent, RiskProfile, SourceTier, SourceType
)

NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def db_engine():
    from signal_engine import models  # noqa: F401

    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        FINNHUB_API_KEY=None,
        NEWS_API_KEY=None,
        ALPHA_VANTAGE_API_KEY=None,
        ALPHA_VANTAGE_ENABLED=False,
        SEC_EDGAR_CONTACT_EMAIL=None,
        SEC_EDGAR_ENABLED=True,
        ENABLED_PROVIDERS="finnhub,newsapi,sec_edgar,alpha_vantage",
        PROVIDER_TIMEOUT_SECONDS=2.0,
        PROVIDER_MAX_CONCURRENCY=4,
        NEWS_LOOKBACK_DAYS=7,
        HEADLINE_DEDUP_ENABLED=False,
        HEADLINE_SIMILARITY_THRESHOLD=0.8,
        HIGH_IMPACT_THRESHOLD=0.7,
        ALERT_LOOKBACK_HOURS=24,
        HIGH_IMPACT_ALERT_LIMIT=5,
        DIGEST_ALERT_LIMIT=20,
    )


@pytest.fixture
def make_holding(db_session):
    def factory(user_id="user-1", ticker="AAPL", shares="10", cost_basis="100",
                intent=HoldingIntent.HOLD, acquired_at=None):
        holding = Holding(
            user_id=user_id,
            ticker=ticker,
            shares=Decimal(shares),
            cost_basis=Decimal(cost_basis) if cost_basis is not None else None,
            intent=intent,
            acquired_at=acquired_at,
        )
        db_session.add(holding)
        db_session.commit()
        return holding
    return factory


@pytest.fixture
def make_profile(db_session):
    def factory(user_id="user-1", risk_profile=RiskProfile.BALANCED):
        profile = UserProfile(user_id=user_id, risk_profile=risk_profile)
        db_session.add(profile)
        db_session.commit()
        return profile
    return factory


@pytest.fixture
def make_article(db_session):
    counter = {'n': 0}

    def factory(ticker="AAPL", headline="Apple announces quarterly update", summary=None,
                publisher="Reuters", published_at=None, url=None,
                category=EventCategory.UNKNOWN, tier=SourceTier.STANDARD):
        counter['n'] += 1
        article = Article(
            ticker=ticker,
            headline=headline,
            summary=summary,
            source_url=url or f"https://news.example.com/{ticker.lower()}/{counter['n']}",
            publisher=publisher,
            published_at=published_at or NOW,
            ingested_at=NOW,
            source_type=SourceType.NEWS,
            source_tier=tier,
            event_category=category,
        )
        db_session.add(article)
        db_session.commit()
        return article
    return factory


@pytest.fixture
def make_signal(db_session):
    def factory(article, sentiment=1, magnitude=2, confidence=0.9):
        signal = Signal(
            article_id=article.id,
            sentiment=sentiment,
            magnitude=magnitude,
            confidence=confidence,
            reasoning="test",
            matched_keywords=[],
            source_count=1,
            stance_agreement=1.0,
            consensus_factor=0.1,
            analyzed_at=NOW,
        )
        db_session.add(signal)
        db_session.commit()
        db_session.refresh(article)
        return signal
    return factory


@pytest.fixture
def make_impact(db_session):
    def factory(holding, article, impact_score=0.5, exposure=0.1, computed_at=None):
        impact = Impact(
            user_id=holding.user_id,
            article_id=article.id,
            holding_id=holding.id,
            impact_score=impact_score,
            exposure=exposure,
            computed_at=computed_at or NOW,
        )
        db_session.add(impact)
        db_session.commit()
        return impact
    return factory



@pytest.fixture
def stub_provider(test_settings):
    """Factory for in-process providers returning canned RawArticles or raising."""
    from signal_engine.providers.base import BaseNewsProvider

    class StubProvider(BaseNewsProvider):
        def __init__(self, config, name, articles=None, error=None):
            super().__init__(config)
            self.name = name
            self.articles = list(articles or [])
            self.error = error
            self.calls = 0

        def is_available(self):
            return True

        async def _fetch(self, ticker, from_date):
            self.calls += 1
            if self.error is not None:
                raise self.error
            return [a for a in self.articles if a.ticker == ticker]

    def factory(name="stub", articles=None, error=None, config=None):
        return StubProvider(config or test_settings, name, articles=articles, error=error)

    return factory


@pytest.fixture
def raw_article():
    from signal_engine.providers.base import RawArticle

    def factory(ticker="AAPL", headline="Apple shares surge on record growth", url="https://news.example.com/a",
                publisher="Reuters", published_at=None, summary=None):
        return RawArticle(
            ticker=ticker,
            headline=headline,
            url=url,
            publisher=publisher,
            published_at=published_at or NOW,
            summary=summary,
            source_tier=SourceTier.PREMIUM,
        )
    return factory
