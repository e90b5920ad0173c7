"""
Consensus Scorer

Cross-references signalled articles on the same ticker published within
+/- 6 hours of the target article.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from signal_engine.analysis.consensus import WINDOW_HOURS, ConsensusScore, compute_consensus
from signal_engine.database.repositories import ArticleRepository
from signal_engine.models.news import Article
from signal_engine.services.logging_service import get_logger

logger = get_logger(__name__)


class ConsensusScorer:
    def __init__(self, db_session: Session, window_hours: int = WINDOW_HOURS):
        self.db_session = db_session
        self.window = timedelta(hours=window_hours)
        self.articles = ArticleRepository(db_session)

    def score(self, article: Article, sentiment: Optional[int] = None) -> ConsensusScore:
        """
        Consensus for ``article``.

        Args:
            article: Target article
            sentiment: The target's sentiment when its Signal is not stored
                yet; defaults to the stored Signal's sentiment, if any
        """
        if sentiment is None and article.signal is not None:
            sentiment = article.signal.sentiment

        window = self.articles.articles_in_window(
            article.ticker,
            article.published_at - self.window,
            article.published_at + self.window,
            exclude_id=article.id,
        )
        score = compute_consensus(
            sentiment,
            [(other.publisher, other.signal.sentiment) for other in window]
        )

        logger.info(
            "Consensus computed",
            article_id=article.id,
            ticker=article.ticker,
            window_matches=len(window),
            **score.to_dict()
        )
        return score
