"""
Structured logging configuration using structlog.
JSON lines in production, a colored console renderer everywhere else.

There is no module-level logger in the application code: `build_logger` creates the
application logger once, and it is handed to repositories and services explicitly.
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, Processor

from convenly.core.config import Settings

# Libraries whose INFO output drowns the application's own events
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def _service_stamp(settings: Settings) -> Processor:
    def stamp(logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", settings.APP_NAME)
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict

    return stamp


def _renderer(settings: Settings) -> Processor:
    if settings.ENVIRONMENT == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(settings: Settings) -> None:
    """Route structlog through the stdlib root logger; safe to call more than once."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,  # request_id, method, path
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_stamp(settings),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ]
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_logger(name: str = "convenly") -> structlog.stdlib.BoundLogger:
    """
    Create the logger that gets passed down to repositories and services.

    The returned proxy resolves its configuration lazily, so it may be created
    before `setup_logging` runs in the application lifespan.
    """
    return structlog.get_logger(name)
