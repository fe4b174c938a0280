"""
Logging for the exit pass service.

Records flow through the stdlib ``campus_exit`` logger tree. In JSON mode a
python-json-logger formatter renders them; structlog is configured on the
same tree for the access log. Both paths stamp the request id and redact
credential-like fields, so bearer tokens and gate pass credentials never
reach the log sink.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

from campus_exit.config.settings import settings

ROOT_LOGGER = "campus_exit"

# Set per request by the middleware and the auth dependency
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

SENSITIVE_KEYS = (
    'password', 'token', 'secret', 'credential', 'authorization', 'cookie',
)

_configured = False


def sanitize(data: Dict[str, Any]) -> Dict[str, Any]:
    """Redact values whose key looks sensitive, recursing into dicts."""
    for key in list(data.keys()):
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            data[key] = '[REDACTED]'
        elif isinstance(data[key], dict):
            sanitize(data[key])
    return data


# ==================== structlog processors ====================

def add_request_context(logger, method_name, event_dict):
    for key, var in (('request_id', request_id), ('caller_id', user_id)):
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
    event_dict['service'] = 'campus-exit'
    event_dict['environment'] = settings.ENVIRONMENT
    return event_dict


def redact_sensitive(logger, method_name, event_dict):
    return sanitize(event_dict)


# ==================== stdlib formatting ====================

class ExitServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with level, origin and request id"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['origin'] = f"{record.funcName}:{record.lineno}"

        req_id = request_id.get()
        if req_id and 'request_id' not in log_record:
            log_record['request_id'] = req_id

        sanitize(log_record)


def _build_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.LOG_FORMAT == "json":
        handler.setFormatter(ExitServiceJsonFormatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    return handler


def _configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_request_context,
            redact_sensitive,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def _quiet_library_loggers() -> None:
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.LOG_SQL_QUERIES else logging.WARNING
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ==================== public API ====================

class LoggerAdapter:
    """Stdlib logger wrapper that stamps the calling principal on every record"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, *args, **kwargs):
        extra = dict(kwargs.get('extra') or {})
        caller = user_id.get()
        if caller and 'caller_id' not in extra:
            extra['caller_id'] = caller
        kwargs['extra'] = extra
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name or ROOT_LOGGER))


def get_struct_logger(name: Optional[str] = None):
    """structlog logger routed through the stdlib logger ``name``."""
    return structlog.get_logger(name or ROOT_LOGGER)


def setup_logging(force: bool = False):
    """Configure the ``campus_exit`` logger tree once per process."""
    global _configured
    if _configured and not force:
        return

    if settings.ENABLE_STRUCTURED_LOGGING:
        _configure_structlog()

    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    app_logger = logging.getLogger(ROOT_LOGGER)
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    app_logger.addHandler(_build_handler(level))
    _quiet_library_loggers()
    _configured = True

    get_logger(__name__).info("Logging configured", extra={
        'log_level': settings.LOG_LEVEL,
        'log_format': settings.LOG_FORMAT,
        'structured_logging': settings.ENABLE_STRUCTURED_LOGGING,
    })


__all__ = [
    'get_logger',
    'get_struct_logger',
    'setup_logging',
    'sanitize',
    'LoggerAdapter',
    'request_id',
    'user_id',
]
