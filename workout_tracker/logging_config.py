"""structlog + Sentry wiring for the workout tracker.

Everything is driven by ``Settings`` so values from ``.env`` apply here too.
"""

import logging
import sys

import sentry_sdk
import structlog
from asgi_correlation_id.context import correlation_id
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog.contextvars import merge_contextvars

from .config import Settings, get_settings


def _service_context(settings: Settings):
    def add_service_context(logger, method_name, event_dict):
        event_dict.setdefault("service", settings.SERVICE_NAME)
        event_dict.setdefault("env", settings.APP_ENV)
        return event_dict

    return add_service_context


def add_request_id(logger, method_name, event_dict):
    """Attach the X-Request-ID of the current request and tag Sentry with it."""
    request_id = correlation_id.get(None)
    if request_id is None:
        return event_dict
    event_dict["correlation_id"] = request_id
    sentry_sdk.set_tag("correlation_id", request_id)
    return event_dict


def init_sentry(settings: Settings) -> bool:
    if not settings.SENTRY_DSN:
        return False
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.APP_ENV,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", settings.SERVICE_NAME)
    return True


def build_processors(settings: Settings) -> list:
    processors = [
        merge_contextvars,
        _service_context(settings),
        add_request_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.is_dev:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    init_sentry(settings)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level, force=True)
    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
