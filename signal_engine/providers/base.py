"""
Base provider framework for news collection.

Provides the abstract adapter every external news feed implements and the
normalized article record they all return.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from signal_engine.core.config import Settings
from signal_engine.core.exceptions import ProviderError, ProviderStatus
from signal_engine.models.news import EventCategory, SourceTier, SourceType
from signal_engine.services.metrics_service import track_provider_fetch


logger = logging.getLogger(__name__)


@dataclass
class RawArticle:
    """A normalized article as returned by a provider, before persistence."""
    ticker: str
    headline: str
    url: Optional[str]
    publisher: str
    published_at: datetime  # naive UTC
    summary: Optional[str] = None
    source_tier: SourceTier = SourceTier.UNKNOWN
    source_type: SourceType = SourceType.NEWS
    event_category: Optional[EventCategory] = None


class BaseNewsProvider(ABC):
    """
    Abstract base class for all news providers.

    Subclasses implement ``_fetch``; callers only ever use ``fetch_news``,
    which never raises. Any provider failure (network, HTTP status,
    timeout, malformed payload) is logged and turned into an empty list.
    One attempt per call, bounded by ``PROVIDER_TIMEOUT_SECONDS``.
    """

    name: str = "base"

    def __init__(self, config: Settings, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=config.PROVIDER_TIMEOUT_SECONDS)
        self.headers = {
            'User-Agent': f'{config.APP_NAME}/{config.APP_VERSION}',
            'Accept': 'application/json',
        }

    @abstractmethod
    def is_available(self) -> bool:
        """Whether credentials/contact configuration allow this provider to run."""

    def unavailable_reason(self) -> str:
        return "not configured"

    @abstractmethod
    async def _fetch(self, ticker: str, from_date: Optional[datetime]) -> List[RawArticle]:
        """Fetch and normalize articles; may raise ProviderError."""

    async def fetch_news(self, ticker: str, from_date: Optional[datetime] = None) -> List[RawArticle]:
        """
        Fetch normalized articles for ``ticker``.

        Args:
            ticker: Security symbol
            from_date: Earliest publication date; each provider picks its
                own lookback when omitted

        Returns:
            List of RawArticle; empty on any failure
        """
        articles, _ = await self._fetch_with_status(ticker.upper(), from_date)
        return articles

    @track_provider_fetch()
    async def _fetch_with_status(
        self,
        ticker: str,
        from_date: Optional[datetime]
    ) -> Tuple[List[RawArticle], ProviderStatus]:
        if not self.is_available():
            logger.debug(f"{self.name} disabled ({self.unavailable_reason()}), skipping {ticker}")
            return [], ProviderStatus.DISABLED

        try:
            articles = await asyncio.wait_for(
                self._fetch(ticker, from_date),
                timeout=self.config.PROVIDER_TIMEOUT_SECONDS
            )
        except ProviderError as e:
            logger.warning(
                f"Provider {self.name} failed for {ticker}: {e.message}",
                extra={'provider': self.name, 'ticker': ticker, 'status': e.status.value, **e.details}
            )
            return [], e.status
        except asyncio.TimeoutError:
            logger.warning(
                f"Provider {self.name} timed out for {ticker}",
                extra={'provider': self.name, 'ticker': ticker, 'status': ProviderStatus.TIMEOUT.value}
            )
            return [], ProviderStatus.TIMEOUT
        except aiohttp.ClientError as e:
            logger.warning(
                f"Provider {self.name} network error for {ticker}: {e}",
                extra={'provider': self.name, 'ticker': ticker, 'status': ProviderStatus.FAILED.value}
            )
            return [], ProviderStatus.FAILED
        except (KeyError, TypeError, ValueError, IndexError) as e:
            logger.warning(
                f"Provider {self.name} returned a malformed payload for {ticker}: {e}",
                extra={'provider': self.name, 'ticker': ticker, 'status': ProviderStatus.MALFORMED.value}
            )
            return [], ProviderStatus.MALFORMED

        logger.info(f"Fetched {len(articles)} articles from {self.name} for {ticker}")
        return articles, (ProviderStatus.SUCCESS if articles else ProviderStatus.EMPTY)

    @asynccontextmanager
    async def _client(self):
        """Yield the injected session, or a short-lived one closed on exit."""
        if self.session is not None:
            yield self.session
            return

        async with aiohttp.ClientSession(timeout=self.timeout, headers=self.headers) as session:
            yield session

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Single GET returning decoded JSON.

        Raises:
            ProviderError: on rate limiting, blocking, non-2xx or undecodable bodies
        """
        async with self._client() as session:
            async with session.get(url, params=params, headers=headers or self.headers) as response:
                if response.status == 429:
                    raise ProviderError(
                        f"Rate limited by {self.name}",
                        status=ProviderStatus.RATE_LIMITED,
                        details={'status_code': response.status}
                    )
                if response.status in (401, 403):
                    raise ProviderError(
                        f"Access denied by {self.name}",
                        status=ProviderStatus.BLOCKED,
                        details={'status_code': response.status}
                    )
                if response.status >= 400:
                    raise ProviderError(
                        f"HTTP error: {response.status}",
                        status=ProviderStatus.FAILED,
                        details={'status_code': response.status}
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ProviderError(
                        f"Invalid JSON from {self.name}",
                        status=ProviderStatus.MALFORMED,
                        details={'error': str(e)}
                    )
