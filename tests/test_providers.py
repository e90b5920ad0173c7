"""
Tests for provider adapters using an in-process fake HTTP session.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from signal_engine.core.exceptions import ConfigurationError, ProviderStatus
from signal_engine.models.news import EventCategory, SourceTier, SourceType
from signal_engine.providers import (
    AlphaVantageProvider,
    FinnhubProvider,
    NewsApiProvider,
    SecEdgarProvider,
    build_providers,
    provider_registry,
)
from signal_engine.providers.alpha_vantage import normalize_publisher, parse_time_published
from signal_engine.providers.tiers import FINNHUB_PUBLISHER_TIERS, infer_tier


class FakeResponse:
    def __init__(self, status=200, payload=None, error=None):
        self.status = status
        self._payload = payload
        self._error = error

    async def json(self, content_type=None):
        if self._error is not None:
            raise self._error
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Routes GETs by URL substring to canned responses."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, headers=None):
        self.calls.append((url, params, headers))
        for fragment, response in self.routes.items():
            if fragment in url:
                return response
        return FakeResponse(status=404)


def configured(settings, **overrides):
    return settings.model_copy(update=overrides)


class TestFinnhub:

    @pytest.mark.asyncio
    async def test_normalizes_items(self, test_settings):
        config = configured(test_settings, FINNHUB_API_KEY="key")
        published = int(datetime(2024, 3, 14, 15, 30, tzinfo=timezone.utc).timestamp())
        session = FakeSession({'/company-news': FakeResponse(payload=[
            {'headline': "Apple beats", 'url': "https://x/1", 'source': "Reuters",
             'summary': "Strong quarter", 'datetime': published},
            {'headline': "Untiered", 'url': "https://x/2", 'source': "Some Blog", 'datetime': published},
            {'headline': "", 'url': "https://x/3", 'source': "Reuters", 'datetime': published},
            {'headline': "No publisher", 'url': "https://x/4", 'source': "", 'datetime': published},
        ])})

        articles = await FinnhubProvider(config, session=session).fetch_news("aapl")

        assert [a.url for a in articles] == ["https://x/1", "https://x/2", "https://x/4"]
        assert articles[0].ticker == "AAPL"
        assert articles[0].published_at == datetime(2024, 3, 14, 15, 30)
        assert articles[0].source_tier == SourceTier.PREMIUM
        assert articles[1].source_tier == SourceTier.STANDARD
        assert articles[2].source_tier == SourceTier.UNKNOWN
        assert session.calls[0][1]['symbol'] == "AAPL"

    @pytest.mark.asyncio
    async def test_rate_limit_returns_empty(self, test_settings):
        config = configured(test_settings, FINNHUB_API_KEY="key")
        provider = FinnhubProvider(config, session=FakeSession({'/company-news': FakeResponse(status=429)}))

        articles, status = await provider._fetch_with_status("AAPL", None)

        assert articles == []
        assert status == ProviderStatus.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_empty(self, test_settings):
        config = configured(test_settings, FINNHUB_API_KEY="key")
        session = FakeSession({'/company-news': FakeResponse(error=ValueError("bad json"))})

        articles, status = await FinnhubProvider(config, session=session)._fetch_with_status("AAPL", None)

        assert articles == []
        assert status == ProviderStatus.MALFORMED

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, test_settings):
        config = configured(test_settings, FINNHUB_API_KEY="key", PROVIDER_TIMEOUT_SECONDS=0.01)
        provider = FinnhubProvider(config, session=FakeSession({}))

        async def slow(ticker, from_date):
            await asyncio.sleep(1)
            return []

        provider._fetch = slow
        articles, status = await provider._fetch_with_status("AAPL", None)

        assert articles == []
        assert status == ProviderStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_disabled_without_key(self, test_settings):
        session = FakeSession({})
        provider = FinnhubProvider(test_settings, session=session)

        assert not provider.is_available()
        assert await provider.fetch_news("AAPL") == []
        assert session.calls == []


class TestNewsApi:

    def test_placeholder_key_disables(self, test_settings):
        assert not NewsApiProvider(configured(test_settings, NEWS_API_KEY="your_newsapi_key_here")).is_available()
        assert NewsApiProvider(configured(test_settings, NEWS_API_KEY="real")).is_available()

    @pytest.mark.asyncio
    async def test_takes_first_ten(self, test_settings):
        config = configured(test_settings, NEWS_API_KEY="real")
        items = [
            {'title': f"Headline {i}", 'url': f"https://n/{i}", 'source': {'name': "Unknown Times"},
             'publishedAt': "2024-03-14T10:00:00Z", 'description': " desc "}
            for i in range(12)
        ]
        session = FakeSession({'/everything': FakeResponse(payload={'articles': items})})

        articles = await NewsApiProvider(config, session=session).fetch_news("MSFT")

        assert len(articles) == 10
        assert articles[0].published_at == datetime(2024, 3, 14, 10, 0)
        assert articles[0].summary == "desc"
        assert articles[0].source_tier == SourceTier.UNKNOWN

    @pytest.mark.asyncio
    async def test_missing_title(self, test_settings):
        config = configured(test_settings, NEWS_API_KEY="real")
        session = FakeSession({'/everything': FakeResponse(payload={'articles': [
            {'title': None, 'url': "https://n/1", 'source': {'name': "Bloomberg"},
             'publishedAt': "2024-03-14T10:00:00Z"},
        ]})})

        articles = await NewsApiProvider(config, session=session).fetch_news("MSFT")

        assert articles[0].headline == "No title"
        assert articles[0].source_tier == SourceTier.PREMIUM


class TestSecEdgar:

    def test_requires_contact_email(self, test_settings):
        assert not SecEdgarProvider(test_settings).is_available()
        assert SecEdgarProvider(configured(test_settings, SEC_EDGAR_CONTACT_EMAIL="ops@example.com")).is_available()
        assert not SecEdgarProvider(configured(
            test_settings, SEC_EDGAR_CONTACT_EMAIL="ops@example.com", SEC_EDGAR_ENABLED=False
        )).is_available()

    @pytest.mark.asyncio
    async def test_recent_filings(self, test_settings):
        config = configured(test_settings, SEC_EDGAR_CONTACT_EMAIL="ops@example.com")
        today = datetime.now(timezone.utc).strftime('%Y-%m-%d')
        old = (datetime.now(timezone.utc) - timedelta(days=60)).strftime('%Y-%m-%d')
        session = FakeSession({
            'company_tickers.json': FakeResponse(payload={'0': {'cik_str': 320193, 'ticker': "AAPL"}}),
            'submissions/CIK0000320193.json': FakeResponse(payload={'filings': {'recent': {
                'accessionNumber': ["0001", "0002", "0003", "0004"],
                'form': ["8-K", "4", "10-Q", "10-K"],
                'filingDate': [today, today, today, old],
            }}}),
        })

        articles = await SecEdgarProvider(config, session=session).fetch_news("AAPL")

        assert [a.headline for a in articles] == [
            "AAPL files 8-K: Material Event Disclosed",
            "AAPL files 10-Q: Quarterly Financial Report",
        ]
        assert articles[0].event_category == EventCategory.REGULATORY_LEGAL
        assert articles[1].event_category == EventCategory.EARNINGS_BEAT_MISS
        assert all(a.source_tier == SourceTier.OFFICIAL for a in articles)
        assert all(a.source_type == SourceType.FILING for a in articles)
        assert all(a.publisher == "SEC EDGAR" for a in articles)
        assert "accession_number=0001" in articles[0].url
        assert "ops@example.com" in session.calls[0][2]['User-Agent']

    @pytest.mark.asyncio
    async def test_unknown_ticker(self, test_settings):
        config = configured(test_settings, SEC_EDGAR_CONTACT_EMAIL="ops@example.com")
        session = FakeSession({'company_tickers.json': FakeResponse(payload={})})

        assert await SecEdgarProvider(config, session=session).fetch_news("ZZZZ") == []


class TestAlphaVantage:

    def test_disabled_by_default(self, test_settings):
        assert not AlphaVantageProvider(configured(test_settings, ALPHA_VANTAGE_API_KEY="key")).is_available()
        assert not AlphaVantageProvider(configured(
            test_settings, ALPHA_VANTAGE_API_KEY="your_api_key_here", ALPHA_VANTAGE_ENABLED=True
        )).is_available()

    def test_normalize_publisher(self):
        assert normalize_publisher("www.bloomberg.com") == "Bloomberg"
        assert normalize_publisher("WSJ Markets") == "The Wall Street Journal"
        assert normalize_publisher("Benzinga") == "Benzinga"
        assert normalize_publisher(None) == "Alpha Vantage"

    def test_parse_time_published(self):
        assert parse_time_published("20240314T093000") == datetime(2024, 3, 14, 9, 30)
        assert isinstance(parse_time_published("garbage"), datetime)

    @pytest.mark.asyncio
    async def test_feed(self, test_settings):
        config = configured(test_settings, ALPHA_VANTAGE_API_KEY="key", ALPHA_VANTAGE_ENABLED=True)
        feed = [
            {'title': "Company issues product recall", 'url': f"https://av/{i}", 'source': "reuters.com",
             'summary': "x" * 2500, 'time_published': "20240314T093000"}
            for i in range(20)
        ]
        session = FakeSession({'alphavantage': FakeResponse(payload={'feed': feed})})

        articles = await AlphaVantageProvider(config, session=session).fetch_news("AAPL")

        assert len(articles) == 15
        assert len(articles[0].summary) == 2000
        assert articles[0].publisher == "Reuters"
        assert articles[0].source_tier == SourceTier.PREMIUM
        assert articles[0].event_category == EventCategory.RECALL


class TestRegistry:

    def test_tier_inference(self):
        assert infer_tier("Reuters", FINNHUB_PUBLISHER_TIERS, SourceTier.STANDARD) == SourceTier.PREMIUM
        assert infer_tier("PR Newswire via Yahoo", FINNHUB_PUBLISHER_TIERS, SourceTier.STANDARD) == SourceTier.OFFICIAL
        assert infer_tier("", FINNHUB_PUBLISHER_TIERS, SourceTier.STANDARD) == SourceTier.UNKNOWN

    def test_registered_names(self):
        assert set(provider_registry.list_names()) >= {"finnhub", "newsapi", "sec_edgar", "alpha_vantage"}

    def test_build_skips_unconfigured(self, test_settings):
        config = configured(test_settings, FINNHUB_API_KEY="key", ENABLED_PROVIDERS="finnhub,newsapi,bogus")
        providers = build_providers(config)
        assert [p.name for p in providers] == ["finnhub"]

    def test_validate(self, test_settings):
        with pytest.raises(ConfigurationError):
            provider_registry.validate(test_settings)
        with pytest.raises(ConfigurationError):
            provider_registry.validate(configured(test_settings, ENABLED_PROVIDERS="bogus"))

        config = configured(test_settings, SEC_EDGAR_CONTACT_EMAIL="ops@example.com")
        assert provider_registry.validate(config) == ["sec_edgar"]
