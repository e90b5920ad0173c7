"""
Tests for provider fan-out, URL deduplication and headline clustering.
"""

import pytest

from signal_engine.core.exceptions import ProviderError, ProviderStatus
from signal_engine.models.news import Article, EventCategory
from signal_engine.services.news_aggregator import NewsAggregator


class TestDeduplication:

    @pytest.mark.asyncio
    async def test_same_url_from_two_providers_saved_once(self, db_session, test_settings, stub_provider, raw_article):
        article = raw_article(url="https://news.example.com/same")
        providers = [
            stub_provider("first", [article]),
            stub_provider("second", [raw_article(url="https://news.example.com/same", publisher="Bloomberg")]),
        ]

        saved = await NewsAggregator(db_session, providers, test_settings).fetch_for_ticker("AAPL")

        assert len(saved) == 1
        assert db_session.query(Article).count() == 1

    @pytest.mark.asyncio
    async def test_rerun_saves_nothing_new(self, db_session, test_settings, stub_provider, raw_article):
        providers = [stub_provider("first", [raw_article(url="https://news.example.com/1")])]
        aggregator = NewsAggregator(db_session, providers, test_settings)

        first = await aggregator.fetch_for_ticker("AAPL")
        second = await aggregator.fetch_for_ticker("aapl")

        assert len(first) == 1
        assert second == []
        assert db_session.query(Article).count() == 1

    @pytest.mark.asyncio
    async def test_same_url_on_other_ticker_is_kept(self, db_session, test_settings, stub_provider, raw_article):
        providers = [stub_provider("first", [
            raw_article(ticker="AAPL", url="https://news.example.com/shared"),
            raw_article(ticker="MSFT", url="https://news.example.com/shared"),
        ])]

        saved = await NewsAggregator(db_session, providers, test_settings).fetch_for_tickers(["AAPL", "MSFT", "aapl"])

        assert sorted(a.ticker for a in saved) == ["AAPL", "MSFT"]

    def test_persist_sets_enrichment_fields(self, db_session, test_settings, raw_article):
        aggregator = NewsAggregator(db_session, [], test_settings)

        saved = aggregator.persist([raw_article(headline="Apple earnings beat estimates")])

        assert saved[0].event_category == EventCategory.EARNINGS_BEAT_MISS
        assert saved[0].cluster_id is not None


class TestHeadlineClustering:

    @pytest.mark.asyncio
    async def test_similar_headlines_share_cluster_by_default(self, db_session, test_settings, stub_provider, raw_article):
        providers = [stub_provider("first", [
            raw_article(url="https://a.example.com/1", headline="Apple beats earnings estimates"),
            raw_article(url="https://b.example.com/2", headline="Apple beats earnings estimates"),
        ])]

        saved = await NewsAggregator(db_session, providers, test_settings).fetch_for_ticker("AAPL")

        assert len(saved) == 2
        assert saved[0].cluster_id == saved[1].cluster_id

    @pytest.mark.asyncio
    async def test_flag_drops_similar_headlines(self, db_session, test_settings, stub_provider, raw_article):
        config = test_settings.model_copy(update={'HEADLINE_DEDUP_ENABLED': True})
        providers = [stub_provider("first", [
            raw_article(url="https://a.example.com/1", headline="Apple beats earnings estimates"),
            raw_article(url="https://b.example.com/2", headline="Apple beats earnings estimates"),
            raw_article(url="https://c.example.com/3", headline="Apple recalls chargers"),
        ])]

        saved = await NewsAggregator(db_session, providers, config).fetch_for_ticker("AAPL")

        assert [a.source_url for a in saved] == ["https://a.example.com/1", "https://c.example.com/3"]


class TestProviderIsolation:

    @pytest.mark.asyncio
    async def test_failing_provider_does_not_block_others(self, db_session, test_settings, stub_provider, raw_article):
        providers = [
            stub_provider("broken", error=RuntimeError("boom")),
            stub_provider("limited", error=ProviderError("slow down", status=ProviderStatus.RATE_LIMITED)),
            stub_provider("healthy", [raw_article()]),
        ]

        saved = await NewsAggregator(db_session, providers, test_settings).fetch_for_ticker("AAPL")

        assert len(saved) == 1
        assert all(p.calls == 1 for p in providers)

    @pytest.mark.asyncio
    async def test_no_providers(self, db_session, test_settings):
        assert await NewsAggregator(db_session, [], test_settings).fetch_for_ticker("AAPL") == []


class TestConcurrentWriters:

    def test_url_saved_by_another_writer_is_skipped(self, db_session, test_settings, make_article, raw_article, monkeypatch):
        make_article(ticker="AAPL", url="https://news.example.com/race")
        aggregator = NewsAggregator(db_session, [], test_settings)
        # URL lookup taken before the other writer committed
        monkeypatch.setattr(aggregator.articles, "existing_urls", lambda ticker: set())

        saved = aggregator.persist([
            raw_article(url="https://news.example.com/race"),
            raw_article(url="https://news.example.com/fresh", headline="Apple opens new campus"),
        ])

        assert [a.source_url for a in saved] == ["https://news.example.com/fresh"]
        assert db_session.query(Article).count() == 2
