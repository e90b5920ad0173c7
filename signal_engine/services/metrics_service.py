"""
Prometheus metrics service for monitoring pipeline throughput.
"""

from typing import Dict, Optional, Any
import time
import functools

from prometheus_client import (
    Counter, Histogram, Info, CollectorRegistry, generate_latest
)

from signal_engine import __version__


class MetricsRegistry:
    """Centralized metrics registry for the pipeline."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_application_metrics()
        self._setup_provider_metrics()
        self._setup_pipeline_metrics()

    def _setup_application_metrics(self) -> None:
        self._metrics['app_info'] = Info(
            'signal_engine_info',
            'Signal engine build information',
            registry=self.registry
        )
        self._metrics['app_info'].info({
            'version': __version__,
            'name': 'signal-engine'
        })

    def _setup_provider_metrics(self) -> None:
        """Set up news-provider metrics."""
        self._metrics['provider_fetch_total'] = Counter(
            'provider_fetch_total',
            'Total provider fetch calls',
            ['provider', 'status'],
            registry=self.registry
        )

        self._metrics['provider_fetch_duration'] = Histogram(
            'provider_fetch_duration_seconds',
            'Time spent in a single provider fetch',
            ['provider'],
            registry=self.registry
        )

        self._metrics['articles_ingested_total'] = Counter(
            'articles_ingested_total',
            'Articles persisted by the aggregator',
            ['ticker_source'],
            registry=self.registry
        )

    def _setup_pipeline_metrics(self) -> None:
        """Set up scoring and output metrics."""
        self._metrics['signals_created_total'] = Counter(
            'signals_created_total',
            'Signals created',
            ['sentiment'],
            registry=self.registry
        )

        self._metrics['impacts_created_total'] = Counter(
            'impacts_created_total',
            'Impacts created',
            registry=self.registry
        )

        self._metrics['recommendations_total'] = Counter(
            'recommendations_total',
            'Per-ticker recommendations produced',
            ['action'],
            registry=self.registry
        )

        self._metrics['alerts_created_total'] = Counter(
            'alerts_created_total',
            'Alert payloads created',
            ['alert_type'],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def generate_metrics(self) -> str:
        """Generate Prometheus metrics output."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics registry instance
metrics_registry = MetricsRegistry()


def track_provider_fetch(provider: Optional[str] = None):
    """
    Decorator to track provider fetch metrics.

    When ``provider`` is omitted the label is read from the bound
    instance's ``name`` attribute.

    The wrapped coroutine returns ``(articles, status)``; the status value
    becomes the ``status`` label.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            status = "failed"
            label = provider or getattr(args[0], "name", "unknown")

            try:
                result = await func(*args, **kwargs)
                status = result[1].value
                return result
            finally:
                duration = time.time() - start_time

                metrics_registry.get_metric('provider_fetch_total').labels(
                    provider=label, status=status
                ).inc()

                metrics_registry.get_metric('provider_fetch_duration').labels(
                    provider=label
                ).observe(duration)

        return wrapper
    return decorator


def record_article_ingested(ticker_source: str, count: int = 1) -> None:
    if count:
        metrics_registry.get_metric('articles_ingested_total').labels(ticker_source=ticker_source).inc(count)


def record_signal_created(sentiment: int) -> None:
    label = {1: "positive", -1: "negative"}.get(sentiment, "neutral")
    metrics_registry.get_metric('signals_created_total').labels(sentiment=label).inc()


def record_impact_created(count: int = 1) -> None:
    if count:
        metrics_registry.get_metric('impacts_created_total').inc(count)


def record_recommendation(action: str) -> None:
    metrics_registry.get_metric('recommendations_total').labels(action=action).inc()


def record_alert_created(alert_type: str) -> None:
    metrics_registry.get_metric('alerts_created_total').labels(alert_type=alert_type).inc()
