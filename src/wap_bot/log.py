"""Logging configuration with Rich formatting.

Provides setup_logging() for app initialization, get_logger() for module-level loggers
and bind_logger() to carry structured fields (channel, thread, provider...) through an operation.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple
from rich.logging import RichHandler
from .config import Settings, get_settings

def setup_logging(settings: Optional[Settings] = None):
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)]
    )
    
    # Quiet down some noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if not settings.DEBUG:
        logging.getLogger("slack_sdk").setLevel(logging.WARNING)

def get_logger(name: str):
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """LoggerAdapter that keeps a set of structured fields.

    Fields end up both on the LogRecord (``record.fields``) and rendered as
    ``key=value`` pairs after the message, since RichHandler only prints the message.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        fields = dict(self.extra)
        extra = kwargs.get("extra") or {}
        fields.update(extra.pop("fields", {}))
        extra["fields"] = fields
        kwargs["extra"] = extra
        if fields:
            rendered = " ".join(f"{k}={v}" for k, v in fields.items())
            msg = f"{msg} [{rendered}]"
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextLogger":
        merged: Dict[str, Any] = dict(self.extra)
        merged.update(fields)
        return ContextLogger(self.logger, merged)


def bind_logger(logger, **fields: Any) -> ContextLogger:
    """Returns an adapter of ``logger`` (or of another ContextLogger) carrying ``fields``."""
    if isinstance(logger, ContextLogger):
        return logger.bind(**fields)
    return ContextLogger(logger, fields)
