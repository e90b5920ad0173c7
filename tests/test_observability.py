"""
Tests for the metrics registry and job logging context.
"""

import pytest
import structlog
from prometheus_client import CollectorRegistry

from signal_engine.core.exceptions import ProviderStatus
from signal_engine.services.logging_service import bind_job_context, clear_job_context
from signal_engine.services.metrics_service import MetricsRegistry, metrics_registry, track_provider_fetch


class TestMetricsRegistry:

    def test_isolated_registry_exposes_pipeline_metrics(self):
        registry = MetricsRegistry(CollectorRegistry())
        registry.get_metric('signals_created_total').labels(sentiment="positive").inc()

        output = registry.generate_metrics()

        assert 'signals_created_total{sentiment="positive"} 1.0' in output
        assert 'signal_engine_info' in output

    def test_unknown_metric(self):
        assert MetricsRegistry(CollectorRegistry()).get_metric('missing') is None

    @pytest.mark.asyncio
    async def test_track_provider_fetch_uses_status_label(self):
        @track_provider_fetch("tracked-test")
        async def fetch():
            return [], ProviderStatus.EMPTY

        labels = {"provider": "tracked-test", "status": "empty"}
        before = metrics_registry.registry.get_sample_value("provider_fetch_total", labels) or 0.0

        await fetch()

        assert metrics_registry.registry.get_sample_value("provider_fetch_total", labels) == before + 1


class TestJobContext:

    def test_bind_and_clear(self):
        run_id = bind_job_context("fetch_news", ticker="AAPL")
        try:
            context = structlog.contextvars.get_contextvars()
            assert len(run_id) == 12
            assert context['job_name'] == "fetch_news"
            assert context['ticker'] == "AAPL"
        finally:
            clear_job_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_explicit_run_id(self):
        try:
            assert bind_job_context("digest", run_id="abc") == "abc"
        finally:
            clear_job_context()
