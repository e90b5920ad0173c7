"""
Signal Pipeline

Orchestrates the downstream stages for each new article: sentiment,
consensus (derived, then applied to the confidence here), persisted
Signal, then Impacts. Every stage commits its own unit of work, so a rerun
after a partial failure only redoes the missing idempotent steps.
"""

import dataclasses
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from signal_engine.analysis.consensus import apply_consensus_bonus
from signal_engine.core.config import Settings
from signal_engine.core.exceptions import DuplicateSignalError
from signal_engine.database.repositories import ArticleRepository
from signal_engine.models.impact import Impact
from signal_engine.models.news import Article, Signal
from signal_engine.providers.base import BaseNewsProvider
from signal_engine.providers.manager import build_providers
from signal_engine.services.impact_service import ImpactCalculator
from signal_engine.services.logging_service import get_logger
from signal_engine.services.news_aggregator import NewsAggregator
from signal_engine.services.signal_service import SignalAnalyzer

logger = get_logger(__name__)


class SignalPipeline:
    def __init__(
        self,
        db_session: Session,
        config: Settings,
        providers: Optional[Sequence[BaseNewsProvider]] = None
    ):
        self.db_session = db_session
        self.config = config
        self._providers = providers
        self.articles = ArticleRepository(db_session)
        self.analyzer = SignalAnalyzer(db_session)
        self.consensus = self.analyzer.consensus
        self.impacts = ImpactCalculator(db_session)

    def analyze_article(self, article: Article) -> Signal:
        """Signal for ``article`` with the consensus bonus applied; reuses an existing Signal."""
        existing = self.articles.find_signal(article.id)
        if existing is not None:
            return existing

        result = self.analyzer.evaluate(article)
        score = self.consensus.score(article, result.sentiment)
        result = dataclasses.replace(
            result,
            confidence=apply_consensus_bonus(result.confidence, score)
        )

        try:
            return self.analyzer.persist(article, result, score)
        except DuplicateSignalError:
            logger.info("Signal already exists", article_id=article.id)
            return self.articles.find_signal(article.id)

    def process_article(self, article: Article) -> List[Impact]:
        self.analyze_article(article)
        self.db_session.refresh(article)
        return self.impacts.compute_for_article(article)

    def process_articles(self, articles: Iterable[Article]) -> Dict[str, int]:
        processed = 0
        impacts = 0
        for article in articles:
            impacts += len(self.process_article(article))
            processed += 1
        return {'articles_processed': processed, 'impacts_created': impacts}

    def process_pending_articles(self, limit: Optional[int] = None) -> Dict[str, int]:
        """Resume point: analyze every article still missing a Signal."""
        pending = self.articles.articles_without_signal(limit)
        stats = self.process_articles(pending)
        logger.info("Pending articles processed", **stats)
        return stats

    async def ingest(self, tickers: Iterable[str]) -> Dict[str, int]:
        """Fetch news for ``tickers`` and run every new article through the pipeline."""
        providers = self._providers
        if providers is None:
            providers = build_providers(self.config)

        aggregator = NewsAggregator(self.db_session, providers, self.config)
        saved = await aggregator.fetch_for_tickers(tickers)

        stats = {'articles_saved': len(saved)}
        stats.update(self.process_articles(saved))
        logger.info("Ingestion run complete", **stats)
        return stats
