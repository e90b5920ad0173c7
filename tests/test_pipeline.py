"""
Tests for the pipeline orchestration: Signal with consensus bonus, then Impacts.
"""

from datetime import timedelta

import pytest

from signal_engine.models.impact import Impact
from signal_engine.models.news import Article, Signal
from signal_engine.services.pipeline_service import SignalPipeline


class TestProcessPendingArticles:

    def test_creates_signal_and_impacts(self, db_session, test_settings, make_holding, make_article):
        make_holding(ticker="AAPL")
        make_article(ticker="AAPL", headline="Apple shares surge", publisher="Reuters")

        stats = SignalPipeline(db_session, test_settings).process_pending_articles()

        assert stats == {'articles_processed': 1, 'impacts_created': 1}
        assert db_session.query(Signal).count() == 1
        impact = db_session.query(Impact).one()
        assert impact.impact_score == pytest.approx(1 * 3 * 0.95 * 1.0)

    def test_rerun_is_noop(self, db_session, test_settings, make_holding, make_article):
        make_holding(ticker="AAPL")
        make_article(ticker="AAPL", headline="Apple shares surge")
        pipeline = SignalPipeline(db_session, test_settings)

        pipeline.process_pending_articles()
        stats = pipeline.process_pending_articles()

        assert stats == {'articles_processed': 0, 'impacts_created': 0}
        assert db_session.query(Impact).count() == 1

    def test_consensus_bonus_applied(self, db_session, test_settings, now, make_article):
        make_article(ticker="AAPL", headline="Apple profit growth", publisher="Yahoo Finance",
                     published_at=now - timedelta(hours=1))
        make_article(ticker="AAPL", headline="Apple posts strong gain", publisher="TechCrunch", published_at=now)

        SignalPipeline(db_session, test_settings).process_pending_articles()

        signals = {s.article.publisher: s for s in db_session.query(Signal).all()}
        lone, corroborated = signals["Yahoo Finance"], signals["TechCrunch"]
        assert lone.confidence == pytest.approx(0.75)
        assert lone.consensus_factor == pytest.approx(0.1)
        assert corroborated.confidence == pytest.approx(0.80)
        assert corroborated.source_count == 2
        assert corroborated.consensus_factor == pytest.approx(0.2)

    def test_resumes_after_partial_failure(self, db_session, test_settings, make_holding, make_article, make_signal):
        # Signal committed, impact never written
        article = make_article(ticker="AAPL", headline="Apple shares surge")
        make_signal(article)
        make_holding(ticker="AAPL")

        impacts = SignalPipeline(db_session, test_settings).process_article(article)

        assert len(impacts) == 1
        assert db_session.query(Signal).count() == 1


class TestIngest:

    @pytest.mark.asyncio
    async def test_ingest_runs_every_stage(self, db_session, test_settings, make_holding, stub_provider, raw_article):
        make_holding(ticker="AAPL")
        provider = stub_provider("stub", [
            raw_article(url="https://news.example.com/1", headline="Apple shares surge"),
            raw_article(url="https://news.example.com/2", headline="Apple faces lawsuit over fraud claims"),
        ])

        stats = await SignalPipeline(db_session, test_settings, providers=[provider]).ingest(["aapl"])

        assert stats == {'articles_saved': 2, 'articles_processed': 2, 'impacts_created': 2}
        assert db_session.query(Article).count() == 2
        assert db_session.query(Impact).count() == 2
