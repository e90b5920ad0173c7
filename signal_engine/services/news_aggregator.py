"""
News aggregation across providers.

Fans out to every active provider concurrently, merges the results and
persists each new article exactly once. A raw article is dropped when its
URL already exists for the same ticker. Headline similarity only groups
articles into clusters unless HEADLINE_DEDUP_ENABLED is set.
"""

import asyncio
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from signal_engine.analysis.event_classifier import classify_headline
from signal_engine.analysis.similarity import HeadlineClusterer
from signal_engine.core.config import Settings
from signal_engine.database.repositories import ArticleRepository, insert_unique
from signal_engine.models.news import Article
from signal_engine.providers.base import BaseNewsProvider, RawArticle
from signal_engine.services.logging_service import get_logger
from signal_engine.services.metrics_service import record_article_ingested
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


class NewsAggregator:
    """Merges provider output into canonical Article rows."""

    def __init__(
        self,
        db_session: Session,
        providers: Sequence[BaseNewsProvider],
        config: Settings
    ):
        self.db_session = db_session
        self.providers = list(providers)
        self.config = config
        self.articles = ArticleRepository(db_session)
        self._semaphore = asyncio.Semaphore(max(1, config.PROVIDER_MAX_CONCURRENCY))

    async def fetch_raw(self, ticker: str, from_date: Optional[datetime] = None) -> List[RawArticle]:
        """Fetch from all providers concurrently; one failing provider never cancels the others."""

        async def run(provider: BaseNewsProvider) -> List[RawArticle]:
            async with self._semaphore:
                return await provider.fetch_news(ticker, from_date)

        results = await asyncio.gather(
            *(run(provider) for provider in self.providers),
            return_exceptions=True
        )

        merged: List[RawArticle] = []
        for provider, result in zip(self.providers, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Provider failed",
                    provider=provider.name,
                    ticker=ticker,
                    status="failed",
                    error=str(result)
                )
                continue
            merged.extend(result)
        return merged

    async def fetch_for_ticker(self, ticker: str, from_date: Optional[datetime] = None) -> List[Article]:
        """Fetch, deduplicate and persist news for one ticker; returns the newly saved articles."""
        ticker = ticker.upper()
        raw_articles = await self.fetch_raw(ticker, from_date)

        saved = self.persist(raw_articles)

        logger.info(
            "Aggregation complete",
            ticker=ticker,
            fetched=len(raw_articles),
            saved=len(saved)
        )
        return saved

    async def fetch_for_tickers(self, tickers: Iterable[str], from_date: Optional[datetime] = None) -> List[Article]:
        unique = list(OrderedDict.fromkeys(t.upper() for t in tickers))
        results = await asyncio.gather(*(self.fetch_for_ticker(t, from_date) for t in unique))
        saved = [article for batch in results for article in batch]
        logger.info("Aggregation run complete", tickers=len(unique), saved=len(saved))
        return saved

    def persist(self, raw_articles: Sequence[RawArticle]) -> List[Article]:
        """
        Save new articles and commit once.

        Existing URLs are loaded once per ticker. The (ticker, url) unique
        constraint is what serializes concurrent writers: when another
        process inserts the same pair after that lookup, our insert is a
        no-op.
        """
        by_ticker: Dict[str, List[RawArticle]] = OrderedDict()
        for raw in raw_articles:
            by_ticker.setdefault(raw.ticker.upper(), []).append(raw)

        saved: List[Article] = []
        duplicates = 0
        now = utcnow()

        for ticker, items in by_ticker.items():
            seen_urls = self.articles.existing_urls(ticker)
            clusterer = self._seed_clusterer(ticker, now)

            for raw in items:
                url = raw.url or None
                if url and url in seen_urls:
                    duplicates += 1
                    continue

                cluster_id = clusterer.match(raw.headline)
                if cluster_id is not None and self.config.HEADLINE_DEDUP_ENABLED:
                    duplicates += 1
                    continue
                if cluster_id is None:
                    cluster_id = clusterer.add(raw.headline)

                article = Article(
                    ticker=ticker,
                    headline=raw.headline,
                    summary=raw.summary,
                    source_url=url,
                    publisher=raw.publisher,
                    published_at=raw.published_at,
                    ingested_at=now,
                    source_type=raw.source_type,
                    source_tier=raw.source_tier,
                    event_category=raw.event_category or classify_headline(raw.headline),
                    cluster_id=cluster_id,
                )
                if url:
                    seen_urls.add(url)

                if insert_unique(self.db_session, article):
                    saved.append(article)
                    record_article_ingested(article.source_type.value)
                else:
                    duplicates += 1

        self.db_session.commit()

        if duplicates:
            logger.info("Skipped duplicate articles", duplicates=duplicates)
        return saved

    def _seed_clusterer(self, ticker: str, now: datetime) -> HeadlineClusterer:
        clusterer = HeadlineClusterer(ticker, self.config.HEADLINE_SIMILARITY_THRESHOLD)
        since = now - timedelta(days=self.config.NEWS_LOOKBACK_DAYS)
        for existing in self.articles.recent_headlines(ticker, since):
            clusterer.add(existing.headline, existing.cluster_id)
        return clusterer
