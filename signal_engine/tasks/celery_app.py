"""
Celery Application Configuration
Redis broker, task routing and the beat schedule for the pipeline entry points
"""

from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from signal_engine.core.config import settings
from signal_engine.services.logging_service import get_logger, setup_logging

setup_logging(settings)
logger = get_logger(__name__)

celery_app = Celery(
    'signal_engine',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        'signal_engine.tasks.ingestion',
        'signal_engine.tasks.analysis',
        'signal_engine.tasks.recommendations',
    ]
)

celery_app.conf.update(
    # Task serialization
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.celery_accept_content_list,

    # Timezone configuration
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=settings.CELERY_ENABLE_UTC,

    # Task execution settings
    task_track_started=True,
    task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
    task_soft_time_limit=settings.CELERY_TASK_SOFT_TIME_LIMIT,
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    # Testing configuration
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,

    result_expires=3600,
    broker_transport_options={
        'visibility_timeout': 3600,
        'retry_on_timeout': True,
        'health_check_interval': 30,
    },
)

celery_app.conf.task_routes = {
    # Ingestion tasks - network bound
    'signal_engine.tasks.ingestion.fetch_news_for_tracked_tickers': {'queue': 'ingestion'},
    'signal_engine.tasks.ingestion.fetch_news_for_ticker': {'queue': 'ingestion'},

    # Analysis tasks - database bound
    'signal_engine.tasks.analysis.process_pending_articles': {'queue': 'analysis'},
    'signal_engine.tasks.analysis.recompute_impacts': {'queue': 'analysis'},

    # Recommendation and alert tasks
    'signal_engine.tasks.recommendations.generate_recommendations': {'queue': 'recommendations'},
    'signal_engine.tasks.recommendations.send_high_impact_alerts': {'queue': 'alerts'},
    'signal_engine.tasks.recommendations.send_daily_digests': {'queue': 'alerts'},
}

celery_app.conf.task_queues = (
    Queue('alerts', routing_key='alerts', queue_arguments={'x-max-priority': 9}),
    Queue('ingestion', routing_key='ingestion', queue_arguments={'x-max-priority': 7}),
    Queue('analysis', routing_key='analysis', queue_arguments={'x-max-priority': 6}),
    Queue('recommendations', routing_key='recommendations', queue_arguments={'x-max-priority': 5}),
    Queue('celery', routing_key='celery', queue_arguments={'x-max-priority': 4}),
)

celery_app.conf.beat_schedule = {
    # News for every tracked ticker every 30 minutes
    'fetch-news': {
        'task': 'signal_engine.tasks.ingestion.fetch_news_for_tracked_tickers',
        'schedule': float(settings.CELERY_BEAT_NEWS_FETCH_INTERVAL),
        'options': {'queue': 'ingestion'},
    },

    # Resume any article left without a Signal or Impact, hourly
    'recompute-impacts': {
        'task': 'signal_engine.tasks.analysis.recompute_impacts',
        'schedule': float(settings.CELERY_BEAT_IMPACT_RECOMPUTE_INTERVAL),
        'options': {'queue': 'analysis'},
    },

    'high-impact-alerts': {
        'task': 'signal_engine.tasks.recommendations.send_high_impact_alerts',
        'schedule': float(settings.CELERY_BEAT_HIGH_IMPACT_INTERVAL),
        'options': {'queue': 'alerts'},
    },

    # Daily digest and recommendations
    'daily-digest': {
        'task': 'signal_engine.tasks.recommendations.send_daily_digests',
        'schedule': crontab(hour=settings.CELERY_BEAT_DIGEST_HOUR, minute=settings.CELERY_BEAT_DIGEST_MINUTE),
        'options': {'queue': 'alerts'},
    },
    'daily-recommendations': {
        'task': 'signal_engine.tasks.recommendations.generate_recommendations',
        'schedule': crontab(hour=settings.CELERY_BEAT_DIGEST_HOUR, minute=settings.CELERY_BEAT_DIGEST_MINUTE),
        'options': {'queue': 'recommendations'},
    },
}

celery_app.conf.task_default_queue = 'celery'
celery_app.conf.task_default_exchange_type = 'direct'
celery_app.conf.task_default_routing_key = 'celery'

celery_app.conf.task_reject_on_worker_lost = True

logger.info("Celery application configured", broker=settings.CELERY_BROKER_URL, queues=[q.name for q in celery_app.conf.task_queues])

__all__ = ['celery_app']
