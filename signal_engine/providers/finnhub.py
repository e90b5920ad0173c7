"""
Finnhub company-news provider.

Free tier allows 60 calls/minute; a 429 is reported as rate-limited and the
ticker simply gets no Finnhub articles this run.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from signal_engine.models.news import SourceTier
from signal_engine.utils.datetime import to_naive_utc
from .base import BaseNewsProvider, RawArticle
from .manager import register_provider
from .tiers import FINNHUB_PUBLISHER_TIERS, infer_tier


@register_provider("finnhub")
class FinnhubProvider(BaseNewsProvider):
    name = "finnhub"
    base_url = "https://finnhub.io/api/v1"

    def is_available(self) -> bool:
        return bool(self.config.FINNHUB_API_KEY)

    def unavailable_reason(self) -> str:
        return "FINNHUB_API_KEY not set"

    async def _fetch(self, ticker: str, from_date: Optional[datetime]) -> List[RawArticle]:
        now = datetime.now(timezone.utc)
        start = from_date or (now - timedelta(days=self.config.NEWS_LOOKBACK_DAYS))
        params = {
            'symbol': ticker,
            'from': start.strftime('%Y-%m-%d'),
            'to': now.strftime('%Y-%m-%d'),
            'token': self.config.FINNHUB_API_KEY,
        }

        payload = await self._get_json(f"{self.base_url}/company-news", params=params)
        if not payload:
            return []

        articles = []
        for item in payload:
            headline = item.get('headline')
            url = item.get('url')
            if not headline or not url:
                continue

            source = item.get('source')
            articles.append(RawArticle(
                ticker=ticker,
                headline=headline,
                summary=item.get('summary') or None,
                url=url,
                publisher=source or "Unknown",
                published_at=to_naive_utc(datetime.fromtimestamp(int(item.get('datetime', 0)), tz=timezone.utc)),
                source_tier=infer_tier(source, FINNHUB_PUBLISHER_TIERS, default=SourceTier.STANDARD),
            ))

        return articles
