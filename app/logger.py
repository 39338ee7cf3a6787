"""
Structured logging for the vocab app.

Every module logs through structlog on top of the stdlib handlers, so uvicorn
output and application events share one JSON stream.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger


def add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Expand a leading "[Service.operation]" tag into separate fields."""
    event = event_dict.get("event", "")
    if isinstance(event, str) and event.startswith("[") and "]" in event:
        tag = event[1 : event.index("]")]
        service, _, operation = tag.partition(".")
        event_dict["service"] = service
        if operation:
            event_dict["operation"] = operation
    return event_dict


shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.format_exc_info,
    add_service_context,
]


def configure_logging(log_level: str = "INFO") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )

    root_logger = logging.getLogger()
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(logger_name)
        uv_logger.handlers = []
        uv_logger.propagate = True
    logging.getLogger("httpx").setLevel(logging.WARNING)


class ServiceLogger:
    """Logger that prefixes every event with "[service.operation]".

    Usage:
        log = get_service_logger("Lookup")
        log.info("resolve", "Curated hit", word="vibe")
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self._logger = structlog.get_logger("vocab")

    def _event(self, operation: str, message: str) -> str:
        return f"[{self.service_name}.{operation}] {message}"

    def debug(self, operation: str, message: str, **kwargs) -> None:
        self._logger.debug(self._event(operation, message), **kwargs)

    def info(self, operation: str, message: str, **kwargs) -> None:
        self._logger.info(self._event(operation, message), **kwargs)

    def warning(self, operation: str, message: str, **kwargs) -> None:
        self._logger.warning(self._event(operation, message), **kwargs)

    def error(self, operation: str, message: str, **kwargs) -> None:
        self._logger.error(self._event(operation, message), **kwargs)

    def exception(self, operation: str, message: str, **kwargs) -> None:
        self._logger.exception(self._event(operation, message), **kwargs)


def get_service_logger(service_name: str) -> ServiceLogger:
    return ServiceLogger(service_name)
