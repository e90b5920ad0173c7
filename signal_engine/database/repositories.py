"""
Query helpers over the ORM models.

Each repository wraps a caller-owned Session; none of them commits.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from signal_engine.models import (
    Article, Signal, Holding, UserProfile, Impact, Alert,
    EventCategory, RiskProfile, AlertType
)


def insert_unique(session: Session, instance) -> bool:
    """
    Insert ``instance`` inside a SAVEPOINT.

    Returns False when a unique constraint rejects the row (a concurrent
    writer got there first); the outer transaction stays usable.
    """
    try:
        with session.begin_nested():
            session.add(instance)
            session.flush()
    except IntegrityError:
        if instance in session:
            session.expunge(instance)
        return False
    return True


class HoldingRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_holdings_for_ticker(self, ticker: str) -> List[Holding]:
        return self.session.query(Holding).filter(Holding.ticker == ticker.upper()).all()

    def get_holdings_for_user(self, user_id: str) -> List[Holding]:
        return (
            self.session.query(Holding)
            .filter(Holding.user_id == user_id)
            .order_by(Holding.ticker)
            .all()
        )

    def get_holding(self, user_id: str, ticker: str) -> Optional[Holding]:
        return self.session.query(Holding).filter(
            and_(Holding.user_id == user_id, Holding.ticker == ticker.upper())
        ).first()

    def get_tracked_tickers(self) -> List[str]:
        rows = self.session.query(Holding.ticker).distinct().order_by(Holding.ticker).all()
        return [row[0] for row in rows]

    def get_user_ids(self) -> List[str]:
        rows = self.session.query(Holding.user_id).distinct().order_by(Holding.user_id).all()
        return [row[0] for row in rows]


class ProfileRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_risk_profile(self, user_id: str) -> RiskProfile:
        profile = self.session.query(UserProfile).filter(UserProfile.user_id == user_id).first()
        if profile is None or profile.risk_profile is None:
            return RiskProfile.BALANCED
        return profile.risk_profile


class ArticleRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, article_id: int) -> Optional[Article]:
        return self.session.get(Article, article_id)

    def existing_urls(self, ticker: str) -> Set[str]:
        rows = self.session.query(Article.source_url).filter(
            and_(Article.ticker == ticker.upper(), Article.source_url.isnot(None))
        ).all()
        return {row[0] for row in rows}

    def recent_headlines(self, ticker: str, since: datetime) -> List[Article]:
        return self.session.query(Article).filter(
            and_(Article.ticker == ticker.upper(), Article.published_at >= since)
        ).all()

    def find_signal(self, article_id: int) -> Optional[Signal]:
        return self.session.query(Signal).filter(Signal.article_id == article_id).first()

    def articles_in_window(
        self,
        ticker: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None
    ) -> List[Article]:
        """Articles on ``ticker`` with a Signal, published in [start, end]."""
        query = (
            self.session.query(Article)
            .join(Signal, Signal.article_id == Article.id)
            .options(joinedload(Article.signal))
            .filter(
                and_(
                    Article.ticker == ticker.upper(),
                    Article.published_at >= start,
                    Article.published_at <= end,
                )
            )
        )
        if exclude_id is not None:
            query = query.filter(Article.id != exclude_id)
        return query.all()

    def analog_candidates(
        self,
        ticker: str,
        category: EventCategory,
        start: datetime,
        before: datetime
    ) -> List[Article]:
        """Signalled articles of one category published in [start, before)."""
        return (
            self.session.query(Article)
            .join(Signal, Signal.article_id == Article.id)
            .options(joinedload(Article.signal))
            .filter(
                and_(
                    Article.ticker == ticker.upper(),
                    Article.event_category == category,
                    Article.published_at >= start,
                    Article.published_at < before,
                )
            )
            .order_by(Article.published_at)
            .all()
        )

    def articles_without_signal(self, limit: Optional[int] = None) -> List[Article]:
        query = (
            self.session.query(Article)
            .outerjoin(Signal, Signal.article_id == Article.id)
            .filter(Signal.id.is_(None))
            .order_by(Article.published_at)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def articles_with_signal(self, tickers: Optional[Iterable[str]] = None) -> List[Article]:
        query = (
            self.session.query(Article)
            .join(Signal, Signal.article_id == Article.id)
            .options(joinedload(Article.signal))
        )
        if tickers is not None:
            query = query.filter(Article.ticker.in_([t.upper() for t in tickers]))
        return query.order_by(Article.published_at).all()


class ImpactRepository:
    def __init__(self, session: Session):
        self.session = session

    def exists(self, user_id: str, article_id: int) -> bool:
        return self.session.query(Impact.id).filter(
            and_(Impact.user_id == user_id, Impact.article_id == article_id)
        ).first() is not None

    def recent_for_user(self, user_id: str, since: datetime) -> List[Impact]:
        """Impacts computed since ``since``, with article, signal and holding loaded."""
        return (
            self.session.query(Impact)
            .options(
                joinedload(Impact.article).joinedload(Article.signal),
                joinedload(Impact.holding),
            )
            .filter(and_(Impact.user_id == user_id, Impact.computed_at >= since))
            .order_by(Impact.computed_at.desc())
            .all()
        )

    def user_ids_with_impacts_since(self, since: datetime) -> List[str]:
        rows = (
            self.session.query(Impact.user_id)
            .filter(Impact.computed_at >= since)
            .distinct()
            .order_by(Impact.user_id)
            .all()
        )
        return [row[0] for row in rows]


class AlertRepository:
    def __init__(self, session: Session):
        self.session = session

    def exists_for_day(self, user_id: str, alert_type: AlertType, day) -> bool:
        return self.session.query(Alert.id).filter(
            and_(Alert.user_id == user_id, Alert.alert_type == alert_type, Alert.alert_date == day)
        ).first() is not None
