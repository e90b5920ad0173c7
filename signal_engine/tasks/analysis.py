"""
Analysis Tasks
Resumable Signal and Impact computation
"""

from typing import Optional

from signal_engine.core.config import settings
from signal_engine.database.connection import get_db
from signal_engine.services.impact_service import ImpactCalculator
from signal_engine.services.logging_service import bind_job_context, clear_job_context, get_logger
from signal_engine.services.pipeline_service import SignalPipeline
from signal_engine.tasks.celery_app import celery_app
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def process_pending_articles(self, limit: Optional[int] = None):
    """Analyze articles that have no Signal yet and score their impacts."""
    run_id = bind_job_context('process_pending_articles')
    try:
        db = next(get_db())
        try:
            stats = SignalPipeline(db, settings).process_pending_articles(limit)
        finally:
            db.close()

        return {
            'status': 'success' if stats['articles_processed'] else 'no_items',
            'run_id': run_id,
            **stats,
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("Pending article task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(30 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()


@celery_app.task(bind=True, max_retries=2, default_retry_delay=60)
def recompute_impacts(self):
    """Finish any interrupted run: pending Signals first, then missing Impacts."""
    run_id = bind_job_context('recompute_impacts')
    try:
        db = next(get_db())
        try:
            stats = SignalPipeline(db, settings).process_pending_articles()
            created = ImpactCalculator(db).compute_all()
        finally:
            db.close()

        return {
            'status': 'success',
            'run_id': run_id,
            'articles_processed': stats['articles_processed'],
            'impacts_created': stats['impacts_created'] + len(created),
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("Impact recompute task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(60 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()
