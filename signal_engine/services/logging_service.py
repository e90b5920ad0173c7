"""
Structured logging for pipeline workers.

JSON lines (rendered with orjson) for scheduled workers and log shipping;
colored console output through rich when a developer runs a job in a
terminal with DEBUG on. Scheduled jobs tag every line with their job name
and run id through ``bind_job_context``.
"""

import logging
import sys
import uuid
from typing import Any, Dict, List, Optional

import orjson
import structlog
from rich.logging import RichHandler

from signal_engine.core.config import Settings

NOISY_LOGGERS = ("aiohttp.access", "sqlalchemy.engine", "celery.redirected", "kombu")


def _render_orjson(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    return orjson.dumps(event_dict, default=str, option=orjson.OPT_SORT_KEYS).decode("utf-8")


def _service_tagger(settings: Settings):
    """Processor stamping every event with the service name and environment."""
    def add_service(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", settings.APP_NAME)
        event_dict.setdefault("environment", settings.ENVIRONMENT)
        return event_dict
    return add_service


def _base_processors(settings: Settings) -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        _service_tagger(settings),
        structlog.processors.StackInfoRenderer(),
    ]


def _use_console(settings: Settings) -> bool:
    return settings.DEBUG and sys.stderr.isatty()


def setup_logging(settings: Settings) -> None:
    """
    Configure structlog and the standard library root logger.

    Provider and analysis modules log through ``logging.getLogger``; both
    routes end in the same handler.
    """
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    processors = _base_processors(settings)

    if _use_console(settings):
        processors += [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.UnicodeDecoder(),
            _render_orjson,
        ]
        handler = logging.StreamHandler(sys.stdout)

    logging.basicConfig(format="%(message)s", handlers=[handler], level=level, force=True)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("signal_engine").setLevel(level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Bound structlog logger; callers pass ``__name__``."""
    return structlog.get_logger(name or "signal_engine")


def bind_job_context(job_name: str, run_id: Optional[str] = None, **extra: Any) -> str:
    """
    Tag all log lines of the current job.

    Args:
        job_name: Name of the scheduled entry point
        run_id: Identifier of this run, generated when omitted
        **extra: Additional key/value pairs (ticker, user_id, ...)

    Returns:
        The run id that was bound
    """
    run_id = run_id or uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(job_name=job_name, run_id=run_id, **extra)
    return run_id


def clear_job_context() -> None:
    structlog.contextvars.clear_contextvars()
