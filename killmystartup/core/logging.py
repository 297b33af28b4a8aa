"""Structured logging setup using structlog.

Configures structlog to:
- Output JSON in production, pretty console in dev
- Bind context vars (request_id, user_id, industry) to every log line
- Integrate with stdlib logging so existing loggers get structured output
"""

import logging
import sys
from contextvars import ContextVar

import structlog

from killmystartup.config import get_settings

# ── Context variables (bound per-request/per-job) ────────────────────

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
industry_var: ContextVar[str | None] = ContextVar("industry", default=None)


def _inject_context_vars(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Structlog processor that injects context vars into every log entry."""
    for var, key in [
        (request_id_var, "request_id"),
        (user_id_var, "user_id"),
        (industry_var, "industry"),
    ]:
        val = var.get(None)
        if val is not None:
            # Explicit keys on the log call win
            event_dict.setdefault(key, val)
    return event_dict


def setup_logging() -> None:
    """Configure structlog + stdlib logging. Call once at app startup."""
    settings = get_settings()
    is_dev = settings.debug
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.dev.ConsoleRenderer() if is_dev else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Reduce noise from third-party libs
    for noisy in ("httpx", "httpcore", "openai", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def bind_industry(industry: str | None) -> None:
    """Tag the rest of the current request or job with the industry it serves."""
    if industry:
        industry_var.set(industry)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
