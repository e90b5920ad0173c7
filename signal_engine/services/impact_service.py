"""
Impact Calculator

Converts an article's Signal into one Impact per holder of the ticker.
Computation is idempotent per (user, article): an existing Impact is never
recomputed or overwritten, and the unique constraint on the impacts table
turns a concurrent duplicate insert into a no-op.
"""

from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from signal_engine.analysis.market_impact import (
    PositionView,
    adjusted_exposure,
    compute_exposure,
    impact_score,
    is_concentrated,
)
from signal_engine.core.exceptions import DuplicateImpactError, MissingHoldingError
from signal_engine.database.repositories import (
    ArticleRepository,
    HoldingRepository,
    ImpactRepository,
    insert_unique,
)
from signal_engine.models.impact import Impact
from signal_engine.models.news import Article
from signal_engine.models.portfolio import Holding
from signal_engine.services.logging_service import get_logger
from signal_engine.services.metrics_service import record_impact_created
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


class ImpactCalculator:
    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.holdings = HoldingRepository(db_session)
        self.impacts = ImpactRepository(db_session)
        self.articles = ArticleRepository(db_session)
        self._portfolios: Dict[str, List[PositionView]] = {}

    def _portfolio(self, user_id: str) -> List[PositionView]:
        if user_id not in self._portfolios:
            self._portfolios[user_id] = [
                PositionView.from_holding(h) for h in self.holdings.get_holdings_for_user(user_id)
            ]
        return self._portfolios[user_id]

    def _build_impact(self, article: Article, holding: Holding) -> Impact:
        signal = article.signal
        position = PositionView.from_holding(holding)
        exposure = compute_exposure(position, self._portfolio(holding.user_id))

        if is_concentrated(exposure):
            logger.info(
                "Concentrated position",
                user_id=holding.user_id,
                ticker=holding.ticker,
                exposure=round(exposure, 4),
                adjusted_exposure=round(adjusted_exposure(exposure), 4)
            )

        return Impact(
            user_id=holding.user_id,
            article_id=article.id,
            holding_id=holding.id,
            impact_score=impact_score(signal.sentiment, signal.magnitude, signal.confidence, exposure),
            exposure=exposure,
            computed_at=utcnow(),
        )

    def _save(self, impacts: List[Impact]) -> List[Impact]:
        saved = [impact for impact in impacts if insert_unique(self.db_session, impact)]
        self.db_session.commit()

        if saved:
            record_impact_created(len(saved))
        for impact in saved:
            logger.info(
                "Impact created",
                user_id=impact.user_id,
                article_id=impact.article_id,
                impact_score=round(impact.impact_score, 4),
                exposure=round(impact.exposure, 4)
            )
        return saved

    def compute_for_article(self, article: Article) -> List[Impact]:
        """
        Create the missing Impacts for every holder of ``article.ticker``.

        Returns only the Impacts created by this call; an empty list means
        there was nothing to do.
        """
        if article.signal is None:
            logger.warning("Article has no signal; skipping impact computation", article_id=article.id)
            return []

        pending = [
            self._build_impact(article, holding)
            for holding in self.holdings.get_holdings_for_ticker(article.ticker)
            if not self.impacts.exists(holding.user_id, article.id)
        ]
        if not pending:
            return []
        return self._save(pending)

    def compute_for_user_article(self, user_id: str, article: Article, strict: bool = False) -> Optional[Impact]:
        """
        Impact of ``article`` on one user's holding.

        Raises:
            MissingHoldingError: the user holds no position in the ticker
            DuplicateImpactError: ``strict`` is set and the Impact exists
        """
        holding = self.holdings.get_holding(user_id, article.ticker)
        if holding is None:
            raise MissingHoldingError(user_id, article.ticker)

        if self.impacts.exists(user_id, article.id):
            if strict:
                raise DuplicateImpactError(user_id, article.id)
            return None

        if article.signal is None:
            logger.warning("Article has no signal; skipping impact computation", article_id=article.id)
            return None

        saved = self._save([self._build_impact(article, holding)])
        if not saved and strict:
            raise DuplicateImpactError(user_id, article.id)
        return saved[0] if saved else None

    def compute_for_user(self, user_id: str) -> List[Impact]:
        """Backfill Impacts for every signalled article on the user's tickers."""
        tickers = [h.ticker for h in self.holdings.get_holdings_for_user(user_id)]
        if not tickers:
            return []

        created = []
        for article in self.articles.articles_with_signal(tickers):
            if self.impacts.exists(user_id, article.id):
                continue
            impact = self.compute_for_user_article(user_id, article)
            if impact is not None:
                created.append(impact)
        return created

    def compute_all(self) -> List[Impact]:
        """Recompute missing Impacts for every signalled article on a tracked ticker."""
        tickers = self.holdings.get_tracked_tickers()
        if not tickers:
            return []

        created = []
        for article in self.articles.articles_with_signal(tickers):
            created.extend(self.compute_for_article(article))

        logger.info("Impact recompute complete", tickers=len(tickers), created=len(created))
        return created
