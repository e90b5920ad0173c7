"""
Signal Analyzer

Turns an Article into its single Signal. ``evaluate`` is pure; ``persist``
refuses to write a second Signal for the same article; ``analyze`` is the
idempotent entry point that returns the existing Signal when there is one.
The consensus confidence bonus is applied by the pipeline orchestrator.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from signal_engine.analysis.consensus import ConsensusScore, LONE_ARTICLE
from signal_engine.analysis.sentiment_engine import SentimentEngine, SentimentResult
from signal_engine.core.exceptions import DuplicateSignalError
from signal_engine.database.repositories import ArticleRepository, insert_unique
from signal_engine.models.news import Article, Signal
from signal_engine.services.consensus_service import ConsensusScorer
from signal_engine.services.logging_service import get_logger
from signal_engine.services.metrics_service import record_signal_created
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


class SignalAnalyzer:
    def __init__(
        self,
        db_session: Session,
        engine: Optional[SentimentEngine] = None,
        consensus: Optional[ConsensusScorer] = None
    ):
        self.db_session = db_session
        self.engine = engine or SentimentEngine()
        self.consensus = consensus or ConsensusScorer(db_session)
        self.articles = ArticleRepository(db_session)

    def evaluate(self, article: Article) -> SentimentResult:
        """Keyword sentiment and publisher confidence, without touching the database."""
        return self.engine.analyze(article.headline, article.summary, article.publisher)

    def persist(
        self,
        article: Article,
        result: SentimentResult,
        consensus: Optional[ConsensusScore] = None
    ) -> Signal:
        """
        Store ``result`` as the article's Signal and commit.

        The confidence is stored as given; callers that apply a consensus
        bonus do so before calling.

        Raises:
            DuplicateSignalError: the article already has a Signal
        """
        if self.articles.find_signal(article.id) is not None:
            raise DuplicateSignalError(article.id)

        consensus = consensus or LONE_ARTICLE
        signal = Signal(
            article_id=article.id,
            sentiment=result.sentiment,
            magnitude=result.magnitude,
            confidence=max(0.0, min(1.0, result.confidence)),
            reasoning=result.reasoning,
            matched_keywords=result.matched_keywords,
            source_count=consensus.source_count,
            stance_agreement=consensus.stance_agreement,
            consensus_factor=consensus.consensus_factor,
            analyzed_at=utcnow(),
        )
        if not insert_unique(self.db_session, signal):
            raise DuplicateSignalError(article.id)
        self.db_session.commit()

        record_signal_created(signal.sentiment)
        logger.info(
            "Signal created",
            article_id=article.id,
            ticker=article.ticker,
            sentiment=signal.sentiment,
            magnitude=signal.magnitude,
            confidence=round(signal.confidence, 4)
        )
        return signal

    def analyze(self, article: Article) -> Signal:
        """
        Return the article's Signal, creating it if missing.

        A new Signal stores the consensus of its current window; the
        confidence is the publisher credibility without the bonus.
        """
        existing = self.articles.find_signal(article.id)
        if existing is not None:
            return existing
        try:
            result = self.evaluate(article)
            return self.persist(article, result, self.consensus.score(article, result.sentiment))
        except DuplicateSignalError:
            return self.articles.find_signal(article.id)

    def analyze_articles(self, articles: List[Article]) -> List[Signal]:
        """Analyze every article that has no Signal yet; returns only the new ones."""
        created = []
        for article in articles:
            if self.articles.find_signal(article.id) is not None:
                continue
            created.append(self.analyze(article))
        return created
