"""
structlog setup shared by the API process, the notify worker and the CLI.

Production renders one JSON object per line; other environments get the
colored console renderer. Every event carries the service name and, when
tracing is on, the active trace and span ids.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from feedback_sync.config.settings import Settings, get_settings
from feedback_sync.observability.tracing import add_trace_context

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "asyncpg", "redis")


def _service_name_adder(service_name: str) -> Processor:
    def add_service_name(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service_name


def build_processors(settings: Settings) -> list[Processor]:
    """Processor chain for the given environment, renderer last."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        _service_name_adder(settings.otel_service_name),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and route stdlib logging to stdout.

        setup_logging()
        structlog.get_logger().info("Feedback received", feedback_id="123", score=2)
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Attach fields (request_id, feedback_id, ...) to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
