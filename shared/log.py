"""Structured logging: one stdout stream for structlog and stdlib loggers.

structlog events and plain ``logging`` records (uvicorn, slowapi, httpx)
pass through the same processor chain and come out in the same shape::

    {"timestamp": ..., "level": ..., "service": ..., "msg": ..., "context": {...}}

JSON when stdout is not a TTY (containers), console rendering otherwise.

Usage:
    from shared.log import get_logger, setup_logging
    setup_logging("INFO", "json", service="remax-proxy")
    logger = get_logger("remax-proxy")
    logger.info("started", version="1.0")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from structlog.typing import Processor

RESERVED_KEYS = frozenset({"timestamp", "level", "service", "msg", "context"})

# Libraries that log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore")

_handler: logging.Handler | None = None
_initialized = False


def _normalize_log_event(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Fold everything outside RESERVED_KEYS into ``context``."""
    if "msg" not in event_dict and "event" in event_dict:
        event_dict["msg"] = event_dict.pop("event")

    context = event_dict.get("context")
    if not isinstance(context, dict):
        context = {} if context is None else {"value": context}

    for key in [k for k in event_dict if k not in RESERVED_KEYS]:
        context[key] = event_dict.pop(key)
    event_dict["context"] = context
    return event_dict


def _default_service(service: str | None) -> Processor:
    def processor(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]):
        if service:
            event_dict.setdefault("service", service)
        return event_dict

    return processor


def _use_json(log_format: str) -> bool:
    fmt = log_format.lower()
    return fmt == "json" or (fmt == "auto" and not sys.stdout.isatty())


def setup_logging(level: str = "INFO", log_format: str = "auto", service: str | None = None) -> None:
    """Route structlog and stdlib logging to a single stdout handler.

    ``service`` tags records from stdlib loggers, which have no bound
    service name of their own. Calling this again replaces the handler
    installed by the previous call and leaves other root handlers alone.
    """
    global _handler, _initialized

    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if _use_json(log_format)
        else structlog.dev.ConsoleRenderer()
    )
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        _default_service(service),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*pre_chain, structlog.stdlib.add_logger_name],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _normalize_log_event,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(log_level)
    _handler = handler

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    _initialized = True


def get_logger(service_name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with the service name.

    Configures logging from the shared Settings on first use if
    setup_logging() has not been called yet.
    """
    if not _initialized:
        from shared.config import Settings

        settings = Settings()
        setup_logging(settings.log_level, settings.log_format)

    return structlog.get_logger(service=service_name)
