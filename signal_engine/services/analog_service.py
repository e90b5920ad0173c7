"""
Historical Analog Matcher

Finds prior same-category events for a security and summarizes how they
were scored.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from signal_engine.analysis.analogs import MIN_ANALOGS, describe_pattern, lookback_start
from signal_engine.database.repositories import ArticleRepository
from signal_engine.models.news import EventCategory
from signal_engine.schemas.recommendation import AnalogData
from signal_engine.services.logging_service import get_logger

logger = get_logger(__name__)


class HistoricalAnalogMatcher:
    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.articles = ArticleRepository(db_session)

    def find_analogs(self, ticker: str, category: EventCategory, before: datetime) -> Optional[AnalogData]:
        """
        Analog summary for ``ticker``/``category`` strictly before ``before``.

        Returns None when fewer than three prior events exist.
        """
        candidates = self.articles.analog_candidates(ticker, category, lookback_start(before), before)
        pattern = describe_pattern(
            category,
            [(article.signal.sentiment, article.signal.magnitude) for article in candidates]
        )

        if pattern is None:
            logger.info(
                "Insufficient historical analogs",
                ticker=ticker,
                category=category.value,
                found=len(candidates),
                required=MIN_ANALOGS
            )
            return None

        logger.debug("Analog pattern", ticker=ticker, category=category.value, pattern=pattern.pattern)
        # Price-move medians need market data, which this service does not read
        return AnalogData(count=pattern.count, pattern=pattern.pattern)
