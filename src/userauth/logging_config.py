"""structlog setup.

Learn: One call at startup. Pretty console output in development,
one JSON object per line when USERAUTH_LOG_JSON is set. The request-id
middleware binds per-request context via contextvars, which the
merge_contextvars processor folds into every event.

Never pass a password, hash or token to a logger. Log the user id and
the reason instead.
"""

import logging

import structlog


def configure_logging(json_logs: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
