"""
Alpha Vantage NEWS_SENTIMENT provider.

Disabled unless ALPHA_VANTAGE_ENABLED is set and a real key is present.
Every item is reported as Premium tier.
"""

from datetime import datetime
from typing import List, Optional

from signal_engine.analysis.event_classifier import classify_headline
from signal_engine.models.news import SourceTier
from signal_engine.utils.datetime import utcnow
from .base import BaseNewsProvider, RawArticle
from .manager import register_provider


PLACEHOLDER_KEY = "your_api_key_here"
MAX_ARTICLES = 15
MAX_SUMMARY_LENGTH = 2000

# Substring (case-insensitive) -> canonical publisher, checked in order
PUBLISHER_ALIASES = [
    (("bloomberg",), "Bloomberg"),
    (("reuters",), "Reuters"),
    (("wsj", "wall street"), "The Wall Street Journal"),
    (("ft.com", "financial times"), "Financial Times"),
    (("cnbc",), "CNBC"),
    (("marketwatch",), "MarketWatch"),
]


def normalize_publisher(source: Optional[str]) -> str:
    if not source:
        return "Alpha Vantage"
    lowered = source.lower()
    for needles, canonical in PUBLISHER_ALIASES:
        if any(needle in lowered for needle in needles):
            return canonical
    return source


def parse_time_published(value: Optional[str]) -> datetime:
    try:
        return datetime.strptime(value or "", '%Y%m%dT%H%M%S')
    except ValueError:
        return utcnow()


@register_provider("alpha_vantage")
class AlphaVantageProvider(BaseNewsProvider):
    name = "alpha_vantage"
    base_url = "https://www.alphavantage.co/query"

    def is_available(self) -> bool:
        key = self.config.ALPHA_VANTAGE_API_KEY
        return bool(key) and key != PLACEHOLDER_KEY and self.config.ALPHA_VANTAGE_ENABLED

    def unavailable_reason(self) -> str:
        if not self.config.ALPHA_VANTAGE_ENABLED:
            return "ALPHA_VANTAGE_ENABLED is false"
        return "ALPHA_VANTAGE_API_KEY not set"

    async def _fetch(self, ticker: str, from_date: Optional[datetime]) -> List[RawArticle]:
        params = {
            'function': 'NEWS_SENTIMENT',
            'tickers': ticker,
            'apikey': self.config.ALPHA_VANTAGE_API_KEY,
            'limit': 50,
        }
        payload = await self._get_json(self.base_url, params=params)
        feed = (payload or {}).get('feed') or []

        articles = []
        for item in feed[:MAX_ARTICLES]:
            title = (item.get('title') or '').strip() or "No title"
            summary = item.get('summary')
            if summary:
                summary = summary.strip()[:MAX_SUMMARY_LENGTH]
            articles.append(RawArticle(
                ticker=ticker,
                headline=title,
                summary=summary or None,
                url=item.get('url'),
                publisher=normalize_publisher(item.get('source')),
                published_at=parse_time_published(item.get('time_published')),
                source_tier=SourceTier.PREMIUM,
                event_category=classify_headline(title),
            ))

        return articles
