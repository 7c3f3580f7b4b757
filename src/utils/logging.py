"""Logging setup.

All modules log through the standard ``logging`` module; structlog renders
those records either as coloured console lines or as one JSON object per
line. While a topic is being produced every record carries a ``topic`` key.
"""

import logging
import sys
from contextvars import ContextVar, Token

import structlog

current_topic: ContextVar[str | None] = ContextVar("current_topic", default=None)
_topic_token: Token | None = None

# Client libraries that log every request at INFO
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "aiohttp.access",
    "google_genai",
    "google_genai.models",
    "urllib3.connectionpool",
)


def add_topic(_logger, _method_name, event_dict):
    topic = current_topic.get()
    if topic:
        event_dict.setdefault("topic", topic)
    return event_dict


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Route stdlib and structlog output through one handler on stderr.

    Args:
        log_level: Level name for the root logger; unknown names fall back to INFO
        json_output: Emit JSON lines instead of console output
    """
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_topic,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.UnicodeDecoder(),
                _renderer(json_output),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    level = getattr(logging, log_level.upper(), None)
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_job_context(topic: str) -> None:
    """Tag subsequent log records with ``topic``."""
    global _topic_token
    _topic_token = current_topic.set(topic)


def clear_job_context() -> None:
    global _topic_token
    if _topic_token is not None:
        try:
            current_topic.reset(_topic_token)
        except ValueError:
            # Token was created in another context
            current_topic.set(None)
        _topic_token = None
    else:
        current_topic.set(None)
