"""
Ingestion Tasks
News fetch entry points for the scheduler
"""

import asyncio
from typing import Any, Dict, List, Optional

from signal_engine.core.config import settings
from signal_engine.database.connection import get_db
from signal_engine.database.repositories import HoldingRepository
from signal_engine.services.logging_service import bind_job_context, clear_job_context, get_logger
from signal_engine.services.pipeline_service import SignalPipeline
from signal_engine.tasks.celery_app import celery_app
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


def _ingest(tickers: List[str]) -> Dict[str, Any]:
    db = next(get_db())
    try:
        pipeline = SignalPipeline(db, settings)
        return asyncio.run(pipeline.ingest(tickers))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def fetch_news_for_tracked_tickers(self, tickers: Optional[List[str]] = None):
    """Fetch and process news for every ticker any user holds."""
    run_id = bind_job_context('fetch_news_for_tracked_tickers')
    try:
        if tickers is None:
            db = next(get_db())
            try:
                tickers = HoldingRepository(db).get_tracked_tickers()
            finally:
                db.close()

        if not tickers:
            logger.info("No tracked tickers")
            return {
                'status': 'no_tickers',
                'run_id': run_id,
                'timestamp': utcnow().isoformat()
            }

        stats = _ingest(tickers)
        return {
            'status': 'success',
            'run_id': run_id,
            'tickers': len(tickers),
            **stats,
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("News fetch task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(30 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def fetch_news_for_ticker(self, ticker: str):
    run_id = bind_job_context('fetch_news_for_ticker', ticker=ticker.upper())
    try:
        stats = _ingest([ticker])
        return {
            'status': 'success',
            'run_id': run_id,
            'ticker': ticker.upper(),
            **stats,
            'timestamp': utcnow().isoformat()
        }
    except Exception as exc:
        logger.error("News fetch task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(30 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()
