"""
Structured Logging Module
Provides connection-scoped logging with socket id propagation.
"""
import asyncio
import logging
import time
import json
from contextvars import ContextVar
from typing import Optional, Any, Dict
from functools import wraps

from app.core.config import settings

# Context variable for the Socket.IO session currently being handled
sid_var: ContextVar[Optional[str]] = ContextVar('sid', default=None)


def get_sid() -> Optional[str]:
    """Get current socket id from context."""
    return sid_var.get()


def set_sid(sid: Optional[str]) -> None:
    """Set socket id in context."""
    sid_var.set(sid)


class StructuredLogger:
    """
    Structured JSON logger with connection context support.
    Logs in JSON format for production, human-readable for development.
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
        error: Optional[Exception] = None,
    ) -> Dict[str, Any]:
        record = {
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
            'level': level,
            'logger': self.name,
            'message': message,
            'env': settings.APP_ENV,
        }

        sid = get_sid()
        if sid:
            record['sid'] = sid

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
            f"[{record.get('sid', '-')}]",
            record['message'],
        ]

        if 'context' in record:
            parts.append(f"| {record['context']}")

        if 'error' in record:
            parts.append(f"| error={record['error']['type']}: {record['error']['message']}")

        return ' '.join(parts)

    def debug(self, message: str, **extra):
        record = self._build_log_record('DEBUG', message, extra if extra else None)
        self.logger.debug(self._format_message(record))

    def info(self, message: str, **extra):
        record = self._build_log_record('INFO', message, extra if extra else None)
        self.logger.info(self._format_message(record))

    def warning(self, message: str, **extra):
        record = self._build_log_record('WARNING', message, extra if extra else None)
        self.logger.warning(self._format_message(record))

    def error(self, message: str, error: Optional[Exception] = None, **extra):
        record = self._build_log_record('ERROR', message, extra if extra else None, error)
        self.logger.error(self._format_message(record))


def get_logger(name: str = 'shop-realtime') -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)


realtime_logger = get_logger('shop-realtime.realtime')
api_logger = get_logger('shop-realtime.api')


def log_operation(operation: str, logger: Optional[StructuredLogger] = None):
    """
    Decorator for logging function entry/exit with timing.

    Usage:
        @log_operation("shop_access_check", realtime_logger)
        async def verify(...):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            log = logger or api_logger
            start = time.time()
            log.debug(f"{operation} started")
            try:
                result = await func(*args, **kwargs)
                duration = round((time.time() - start) * 1000, 2)
                log.debug(f"{operation} completed", duration_ms=duration)
                return result
            except Exception as e:
                duration = round((time.time() - start) * 1000, 2)
                log.warning(f"{operation} failed", error=type(e).__name__, duration_ms=duration)
                raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            log = logger or api_logger
            start = time.time()
            log.debug(f"{operation} started")
            try:
                result = func(*args, **kwargs)
                duration = round((time.time() - start) * 1000, 2)
                log.debug(f"{operation} completed", duration_ms=duration)
                return result
            except Exception as e:
                duration = round((time.time() - start) * 1000, 2)
                log.warning(f"{operation} failed", error=type(e).__name__, duration_ms=duration)
                raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
