"""Simulator errors. Each carries a KSUID so a log line, a crash record and an HTTP response can be matched."""

from utils.timestamp import format_timestamp
from utils.ksuid import generate_ksuid


class BaseSimError(Exception):
    """Base error with unique ID, timestamp and a context dict."""

    status_code = 500

    def __init__(self, message, context=None, cause=None):
        super().__init__(message)
        self.message = message
        self.error_id = generate_ksuid()
        self.timestamp = format_timestamp()
        self.context = context or {}
        self.cause = cause

    def __str__(self):
        return f"[{self.error_id}] {self.message}"

    def to_dict(self):
        return {"error_id": self.error_id, "timestamp": self.timestamp,
                "type": type(self).__name__, "msg": self.message, "context": self.context}


def _context(kwargs, **fields):
    """Merge non-None fields into an optional `context` kwarg."""
    context = kwargs.pop("context", None) or {}
    context.update({key: value for key, value in fields.items() if value is not None})
    return context


class ConfigError(BaseSimError):
    """Configuration file unreadable, or a required field missing or malformed."""

    def __init__(self, message, path=None, field=None, **kwargs):
        path = str(path) if path is not None else None
        super().__init__(message, context=_context(kwargs, path=path, field=field), **kwargs)


class SurfaceError(BaseSimError):
    """Surface width or height is not a positive finite number."""

    status_code = 400

    def __init__(self, message, width=None, height=None, **kwargs):
        super().__init__(message, context=_context(kwargs, width=width, height=height), **kwargs)


class HeatmapError(BaseSimError):
    """Grid dimensions and buffer size disagree."""


class BusError(BaseSimError):
    """Event bus errors (subscribe/publish failures)."""

    def __init__(self, message, subscriber_name=None, **kwargs):
        super().__init__(message, context=_context(kwargs, subscriber_name=subscriber_name), **kwargs)


class HealthCheckError(BaseSimError):
    """Health check registration failures."""

    def __init__(self, message, component=None, **kwargs):
        super().__init__(message, context=_context(kwargs, component=component), **kwargs)
