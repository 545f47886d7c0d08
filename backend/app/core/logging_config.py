"""
InnoVoice - Centralized Logging Configuration
Supports both development (plain text) and production (JSON structured) logging
"""

import logging
import sys
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional
from contextvars import ContextVar

from app.core.config import settings


# Context variables for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
staff_label_var: ContextVar[str] = ContextVar('staff_label', default='')

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'request_id', 'staff_label',
}


def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    """Set request ID in context"""
    request_id_var.set(request_id)


def get_staff_label() -> str:
    """Get the authenticated staff label from context"""
    return staff_label_var.get() or ''


def set_staff_label(label: str) -> None:
    """Set the authenticated staff label in context"""
    staff_label_var.set(label)


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())[:8]


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production
    One JSON object per line, ready for a log aggregator
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        staff_label = get_staff_label()
        if staff_label:
            log_data["staff_label"] = staff_label

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        # Extra fields passed via `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Readable formatter for development that includes the request context
    """

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.staff_label = get_staff_label() or '-'
        return super().format(record)


class InnoVoiceLogger(logging.Logger):
    """
    Custom logger with convenience methods for structured logging
    """

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, quiet: bool = False, **kwargs) -> None:
        """One access line per request; level follows the status code"""
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.DEBUG if quiet else logging.INFO
        self.log(
            level,
            f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": duration_ms,
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, staff_label: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Log staff authentication events"""
        level = logging.INFO if success else logging.WARNING
        self.log(
            level,
            f"Auth {event}: {'success' if success else 'failed'}" +
            (f" - {staff_label}" if staff_label else "") +
            (f" - {reason}" if reason else ""),
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "auth_label": staff_label,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_collaborator_event(self, collaborator: str, event: str,
                               degraded: bool = False, **kwargs) -> None:
        """Log calls to external collaborators (classifier, image storage)"""
        level = logging.WARNING if degraded else logging.INFO
        self.log(
            level,
            f"{collaborator}: {event}",
            extra={
                "event_type": "collaborator",
                "collaborator": collaborator,
                "collaborator_event": event,
                "degraded": degraded,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        """Error with traceback, tagged with where it happened"""
        error_type = type(error).__name__
        self.error(
            f"{context or 'unhandled'}: {error_type}: {error}",
            exc_info=error,
            extra={"event_type": "error", "error_type": error_type, "error_context": context, **kwargs},
        )

    def log_performance(self, operation: str, duration_ms: float,
                        threshold_ms: float = 1000, **kwargs) -> None:
        """Slow operation warning"""
        slow = duration_ms > threshold_ms
        self.log(
            logging.WARNING if slow else logging.DEBUG,
            f"Slow: {operation} took {duration_ms:.0f}ms (threshold {threshold_ms:.0f}ms)",
            extra={"event_type": "performance", "operation": operation, "duration_ms": duration_ms, "slow": slow, **kwargs},
        )


DEV_CONSOLE_FORMAT = "%(levelname)-8s | [%(request_id)s] %(message)s"
DEV_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(staff_label)s] | "
    "%(funcName)s:%(lineno)d | %(message)s"
)

# Third-party loggers that only speak up on problems
QUIET_LIBRARIES = ("httpx", "httpcore", "anthropic", "botocore", "uvicorn.access", "sqlalchemy.engine")


def _build_handlers(json_output: bool) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(JSONFormatter() if json_output else ContextualFormatter(DEV_CONSOLE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=10 if json_output else 5)
        rotating.setLevel(logging.DEBUG)
        rotating.setFormatter(JSONFormatter() if json_output else ContextualFormatter(DEV_FILE_FORMAT))
        handlers.append(rotating)

    return handlers


def setup_logging() -> InnoVoiceLogger:
    """
    Configure the "innovoice" logger.

    Production writes one JSON object per line; every other environment
    gets the readable format with the request id and staff label inline.
    """
    logging.setLoggerClass(InnoVoiceLogger)
    app_logger = logging.getLogger("innovoice")
    app_logger.__class__ = InnoVoiceLogger
    app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    json_output = settings.ENVIRONMENT == "production"
    app_logger.handlers.clear()
    for handler in _build_handlers(json_output):
        app_logger.addHandler(handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    app_logger.debug(
        "Logging configured",
        extra={"environment": settings.ENVIRONMENT, "json_logging": json_output},
    )
    return app_logger


logger: InnoVoiceLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_staff_label',
    'set_staff_label',
    'generate_request_id',
    'InnoVoiceLogger',
]
