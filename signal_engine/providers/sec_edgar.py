"""
SEC EDGAR filings provider.

No API key, but the SEC requires a descriptive User-Agent with a contact
address; without SEC_EDGAR_CONTACT_EMAIL the provider stays disabled.
Only 8-K, 10-Q and 10-K filings from the last 30 days are reported.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from signal_engine.models.news import EventCategory, SourceTier, SourceType
from signal_engine.utils.datetime import utcnow
from .base import BaseNewsProvider, RawArticle
from .manager import register_provider


logger = logging.getLogger(__name__)

TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"
SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik}.json"
VIEWER_URL = "https://www.sec.gov/cgi-bin/viewer?action=view&cik={cik}&accession_number={accession}&xbrl_type=v"

FILING_LOOKBACK_DAYS = 30
MAX_FILINGS_SCANNED = 20

FILING_TEMPLATES: Dict[str, Tuple[str, str, EventCategory]] = {
    "8-K": (
        "{ticker} files 8-K: Material Event Disclosed",
        "Company filed Form 8-K with the SEC, disclosing a material event. This may include M&A, "
        "leadership changes, financial results, or other significant corporate actions.",
        EventCategory.REGULATORY_LEGAL,
    ),
    "10-Q": (
        "{ticker} files 10-Q: Quarterly Financial Report",
        "Company filed Form 10-Q with the SEC, providing quarterly financial statements and management "
        "discussion. Review for revenue, earnings, and forward guidance.",
        EventCategory.EARNINGS_BEAT_MISS,
    ),
    "10-K": (
        "{ticker} files 10-K: Annual Financial Report",
        "Company filed Form 10-K with the SEC, providing comprehensive annual financial statements, "
        "risk factors, and business overview.",
        EventCategory.EARNINGS_BEAT_MISS,
    ),
}


@register_provider("sec_edgar")
class SecEdgarProvider(BaseNewsProvider):
    name = "sec_edgar"
    publisher = "SEC EDGAR"

    def __init__(self, config, session=None):
        super().__init__(config, session)
        self.headers = {
            'User-Agent': f'{config.APP_NAME.replace(" ", "")}/{config.APP_VERSION} ({config.SEC_EDGAR_CONTACT_EMAIL})',
            'Accept': 'application/json',
        }
        self._cik_cache: Optional[Dict[str, str]] = None

    def is_available(self) -> bool:
        return bool(self.config.SEC_EDGAR_CONTACT_EMAIL) and self.config.SEC_EDGAR_ENABLED

    def unavailable_reason(self) -> str:
        if not self.config.SEC_EDGAR_ENABLED:
            return "SEC_EDGAR_ENABLED is false"
        return "SEC_EDGAR_CONTACT_EMAIL not set"

    async def lookup_cik(self, ticker: str) -> Optional[str]:
        """Resolve a ticker to its zero-padded 10 digit CIK."""
        if self._cik_cache is None:
            payload = await self._get_json(TICKERS_URL)
            self._cik_cache = {
                str(entry['ticker']).upper(): str(entry['cik_str']).zfill(10)
                for entry in (payload or {}).values()
            }
        return self._cik_cache.get(ticker.upper())

    async def _fetch(self, ticker: str, from_date: Optional[datetime]) -> List[RawArticle]:
        cik = await self.lookup_cik(ticker)
        if not cik:
            logger.warning(f"Could not find CIK for ticker {ticker}")
            return []

        payload = await self._get_json(SUBMISSIONS_URL.format(cik=cik))
        recent = ((payload or {}).get('filings') or {}).get('recent')
        if not recent:
            return []

        accessions = recent['accessionNumber']
        cutoff = utcnow() - timedelta(days=FILING_LOOKBACK_DAYS)
        articles = []

        for i in range(min(len(accessions), MAX_FILINGS_SCANNED)):
            form = recent['form'][i]
            template = FILING_TEMPLATES.get(form)
            if template is None:
                continue

            try:
                filed_at = datetime.strptime(recent['filingDate'][i], '%Y-%m-%d')
            except ValueError:
                continue
            if filed_at < cutoff:
                continue

            headline, summary, category = template
            articles.append(RawArticle(
                ticker=ticker,
                headline=headline.format(ticker=ticker),
                summary=summary,
                url=VIEWER_URL.format(cik=cik, accession=accessions[i]),
                publisher=self.publisher,
                published_at=filed_at,
                source_tier=SourceTier.OFFICIAL,
                source_type=SourceType.FILING,
                event_category=category,
            ))

        return articles
