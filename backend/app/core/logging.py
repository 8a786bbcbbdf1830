"""
Structured Logging Module
Provides request-scoped logging with request_id propagation.
"""
import logging
import uuid
import time
import json
from contextvars import ContextVar
from typing import Optional, Any, Dict
from functools import wraps

from app.core.config import settings

# Context variable for request-scoped data
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
request_start_var: ContextVar[Optional[float]] = ContextVar('request_start', default=None)


def get_request_id() -> Optional[str]:
    """Get current request ID from context."""
    return request_id_var.get()


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid.uuid4())[:8]


class StructuredLogger:
    """
    Structured logger with request context support.
    JSON lines in production, one readable line per record elsewhere.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name
        self._is_json = settings.APP_ENV == 'production'

    def _build_log_record(
        self,
        level: str,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> Dict[str, Any]:
        record = {
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
            'level': level,
            'logger': self.name,
            'message': message,
            'env': settings.APP_ENV,
        }

        request_id = get_request_id()
        if request_id:
            record['request_id'] = request_id

        start = request_start_var.get()
        if start:
            record['duration_ms'] = round((time.time() - start) * 1000, 2)

        if extra:
            record['context'] = extra

        if error:
            record['error'] = {
                'type': type(error).__name__,
                'message': str(error),
            }

        return record

    def _format_message(self, record: Dict[str, Any]) -> str:
        if self._is_json:
            return json.dumps(record, default=str)

        parts = [
            f"[{record.get('request_id', '-')}]",
            record['message'],
        ]

        if 'context' in record:
            parts.append(f"| {record['context']}")

        if 'error' in record:
            parts.append(f"| error={record['error']['type']}: {record['error']['message']}")

        if 'duration_ms' in record:
            parts.append(f"| {record['duration_ms']}ms")

        return ' '.join(parts)

    def debug(self, message: str, **extra):
        record = self._build_log_record('DEBUG', message, extra or None)
        self.logger.debug(self._format_message(record))

    def info(self, message: str, **extra):
        record = self._build_log_record('INFO', message, extra or None)
        self.logger.info(self._format_message(record))

    def warning(self, message: str, error: Optional[BaseException] = None, **extra):
        record = self._build_log_record('WARNING', message, extra or None, error)
        self.logger.warning(self._format_message(record))

    def error(self, message: str, error: Optional[BaseException] = None, **extra):
        record = self._build_log_record('ERROR', message, extra or None, error)
        self.logger.error(self._format_message(record))


def get_logger(name: str = 'chatrooms') -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)


api_logger = get_logger('chatrooms.api')
chats_logger = get_logger('chatrooms.chats')
push_logger = get_logger('chatrooms.push')
db_logger = get_logger('chatrooms.database')


def log_operation(operation: str, logger: Optional[StructuredLogger] = None):
    """
    Decorator for logging coroutine entry/exit with timing.

    Usage:
        @log_operation("leave_chat", chats_logger)
        async def leave_chat(...):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            log = logger or api_logger
            start = time.time()
            log.debug(f"{operation} started")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                duration = round((time.time() - start) * 1000, 2)
                log.warning(f"{operation} failed", error=e, duration_ms=duration)
                raise
            duration = round((time.time() - start) * 1000, 2)
            log.info(f"{operation} completed", duration_ms=duration)
            return result

        return wrapper

    return decorator
