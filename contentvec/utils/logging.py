"""Structured logging setup using structlog.

Implements a **dual-renderer pattern**: the same shared processor chain
(context vars, log level, timestamps, stack info) feeds into either a
coloured ConsoleRenderer for local development or a JSONRenderer for
production.  The renderer follows ``Settings.app_env`` (falling back to the
``APP_ENV`` environment variable), or is forced via ``json_output``.

Standard-library ``logging`` is rewired through the same structlog
formatter so that asyncpg, httpx and uvicorn produce identically formatted
output.  The HTTP and driver libraries log every request at INFO, which
drowns out indexing progress during a full run, so they are held at
WARNING unless the service itself runs at DEBUG.
"""

import logging
import os
import sys

import structlog

SERVICE_NAME = "contentvec"

# Third-party loggers that are chatty at INFO (one line per HTTP call / query).
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncpg")


def _add_service(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    app_env: str | None = None,
    json_output: bool = False,
) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR, FATAL).
        app_env: Deployment environment; ``"production"`` selects JSON.
                 Defaults to the ``APP_ENV`` environment variable.
        json_output: Force JSON output regardless of environment.

    Returns:
        A configured structlog BoundLogger.
    """
    if app_env is None:
        app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    level = log_level.upper()

    # contextvars first so request-scoped bindings land before the level.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    third_party_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return structlog.get_logger(logger_name=SERVICE_NAME)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
