"""
Recommendation and Alert Tasks
Produce payloads for the notification dispatcher
"""

from typing import List, Optional

from signal_engine.core.config import settings
from signal_engine.database.connection import get_db
from signal_engine.database.repositories import HoldingRepository
from signal_engine.services.alert_service import AlertService
from signal_engine.services.logging_service import bind_job_context, clear_job_context, get_logger
from signal_engine.services.recommendation_service import RecommendationEngine
from signal_engine.tasks.celery_app import celery_app
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)


@celery_app.task(bind=True, max_retries=2, default_retry_delay=60)
def generate_recommendations(self, user_ids: Optional[List[str]] = None):
    run_id = bind_job_context('generate_recommendations')
    try:
        db = next(get_db())
        try:
            if user_ids is None:
                user_ids = HoldingRepository(db).get_user_ids()
            engine = RecommendationEngine(db)
            reports = [engine.recommend(user_id).model_dump(mode='json') for user_id in user_ids]
        finally:
            db.close()

        return {
            'status': 'success',
            'run_id': run_id,
            'users': len(reports),
            'reports': reports,
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("Recommendation task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(60 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()


@celery_app.task(bind=True, max_retries=2, default_retry_delay=60)
def send_high_impact_alerts(self):
    run_id = bind_job_context('send_high_impact_alerts')
    try:
        db = next(get_db())
        try:
            payloads = AlertService(db, settings).run_high_impact_alerts()
        finally:
            db.close()

        return {
            'status': 'success' if payloads else 'no_alerts',
            'run_id': run_id,
            'alerts': [p.model_dump(mode='json') for p in payloads],
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("High impact alert task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(60 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()


@celery_app.task(bind=True, max_retries=2, default_retry_delay=60)
def send_daily_digests(self):
    run_id = bind_job_context('send_daily_digests')
    try:
        db = next(get_db())
        try:
            payloads = AlertService(db, settings).run_daily_digests()
        finally:
            db.close()

        return {
            'status': 'success' if payloads else 'no_alerts',
            'run_id': run_id,
            'alerts': [p.model_dump(mode='json') for p in payloads],
            'timestamp': utcnow().isoformat()
        }

    except Exception as exc:
        logger.error("Daily digest task failed", error=str(exc))
        raise self.retry(exc=exc, countdown=min(60 * (2 ** self.request.retries), 300))
    finally:
        clear_job_context()
