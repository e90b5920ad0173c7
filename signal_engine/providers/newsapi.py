"""
NewsAPI.org ``/v2/everything`` provider.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from signal_engine.models.news import SourceTier
from signal_engine.utils.datetime import to_naive_utc
from .base import BaseNewsProvider, RawArticle
from .manager import register_provider
from .tiers import NEWSAPI_PUBLISHER_TIERS, infer_tier


PLACEHOLDER_KEY = "your_newsapi_key_here"
MAX_ARTICLES = 10


def _parse_published(value: Optional[str]) -> datetime:
    if not value:
        raise ValueError("publishedAt missing")
    return to_naive_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))


@register_provider("newsapi")
class NewsApiProvider(BaseNewsProvider):
    name = "newsapi"
    base_url = "https://newsapi.org/v2"

    def is_available(self) -> bool:
        key = self.config.NEWS_API_KEY
        return bool(key) and key != PLACEHOLDER_KEY

    def unavailable_reason(self) -> str:
        return "NEWS_API_KEY not set"

    async def _fetch(self, ticker: str, from_date: Optional[datetime]) -> List[RawArticle]:
        now = datetime.now(timezone.utc)
        start = from_date or (now - timedelta(days=self.config.NEWS_LOOKBACK_DAYS))
        params = {
            'q': ticker,
            'from': start.strftime('%Y-%m-%d'),
            'to': now.strftime('%Y-%m-%d'),
            'sortBy': 'publishedAt',
            'language': 'en',
            'apiKey': self.config.NEWS_API_KEY,
        }

        payload = await self._get_json(f"{self.base_url}/everything", params=params)
        items = (payload or {}).get('articles') or []

        articles = []
        for item in items[:MAX_ARTICLES]:
            source_name = (item.get('source') or {}).get('name')
            title = (item.get('title') or '').strip()
            description = item.get('description')
            articles.append(RawArticle(
                ticker=ticker,
                headline=title or "No title",
                summary=description.strip() if description else None,
                url=item.get('url'),
                publisher=source_name or "Unknown",
                published_at=_parse_published(item.get('publishedAt')),
                source_tier=infer_tier(source_name, NEWSAPI_PUBLISHER_TIERS, default=SourceTier.UNKNOWN),
            ))

        return articles
