from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from extractarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Third-party loggers that are too chatty at INFO (httpx logs every request)
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {},
    "handlers": {
        # stdout is reserved for CLI results; all logs go to stderr
        "default": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
}


def _add_record_created_timestamp_utc(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Ensure timestamps for non-structlog (foreign) LogRecords match the time when the record
    was created, not the time when the background listener formats it.

    ProcessorFormatter sets event_dict["_record"] for foreign records.
    """
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = dt.isoformat().replace("+00:00", "Z")
    return event_dict


_QUEUE_LISTENER: Optional[QueueListener] = None


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _foreign_pre_chain() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_record_created_timestamp_utc,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """
    Build a dictConfig rendered through structlog.

    Dynamic behavior:
    - Root level follows config.log_level.
    - Noisy library loggers stay at WARNING unless DEBUG is requested.
    """
    cfg = copy.deepcopy(BASE_LOGGING_CONFIG)

    cfg["formatters"]["structlog"] = {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": _foreign_pre_chain(),
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    }
    cfg["handlers"]["default"]["formatter"] = "structlog"

    level = config.log_level
    if level == "DEBUG":
        for logger_cfg in cfg["loggers"].values():
            logger_cfg["level"] = level

    cfg["root"] = {"handlers": ["default"], "level": level}
    return cfg


def _stop_async_listener() -> None:
    global _QUEUE_LISTENER
    if _QUEUE_LISTENER is not None:
        try:
            _QUEUE_LISTENER.stop()
        finally:
            _QUEUE_LISTENER = None


class _StructlogPreservingQueueHandler(QueueHandler):
    """QueueHandler that keeps structlog event dicts (``record.msg``) intact."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # QueueHandler.prepare() would normally do record.msg = record.getMessage().
        # This destroys dict-msg for structlog + ProcessorFormatter.
        return copy.copy(record)


def _enable_async_logging(config: AppConfig) -> None:
    """
    Route ALL stdlib logging through a QueueHandler; emit via QueueListener in a
    background thread so the event loop never blocks on stderr.
    """
    global _QUEUE_LISTENER

    _stop_async_listener()

    processor_formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_foreign_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    )

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setFormatter(processor_formatter)

    q: queue.Queue[logging.LogRecord] = queue.Queue()  # unbounded; non-dropping
    queue_handler = _StructlogPreservingQueueHandler(q)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(queue_handler)
    root.setLevel(config.log_level)

    # Ensure all relevant loggers propagate into root (so they go through the queue)
    for name in list(logging.root.manager.loggerDict.keys()):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        if name in _NOISY_LOGGERS and config.log_level != "DEBUG":
            logger.setLevel(logging.WARNING)
        else:
            logger.setLevel(config.log_level)

    _QUEUE_LISTENER = QueueListener(q, stderr_handler, respect_handler_level=True)
    _QUEUE_LISTENER.start()
    atexit.register(_stop_async_listener)


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """
    Configure structlog + stdlib logging.

    Returns the dictConfig (useful for debugging/inspection), but the actual
    emission is wired through QueueHandler/QueueListener.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            # Timestamp at log-call time for structlog-originated events
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)

    _enable_async_logging(config)

    log.debug(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
    return cfg


def shutdown_logging() -> None:
    """Flush and stop the background listener (idempotent)."""
    _stop_async_listener()
