"""Contextual logging for Tokengate.

Every logger handed out by this module is a ``ContextualLogger``: a
``LoggerAdapter`` that carries a dict of dimensions (client_id, operation,
...) and an optional message prefix. Dimensions are attached to each record
and rendered by the configured formatter (plain text or JSON).

Usage:
    from tokengate.core.logging import logger

    token_logger = logger.with_prefix("TokenStore: ").with_context(component="token_store")
    token_logger.info("Stored request token")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

ROOT_LOGGER_NAME = "tokengate"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying dimensions and a message prefix."""

    def __init__(
        self,
        logger: logging.Logger,
        dimensions: Optional[dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        """Wrap ``logger`` with the given dimensions and prefix."""
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, Any]:
        """Merge bound dimensions with per-call extras and apply the prefix."""
        call_extra = kwargs.pop("extra", None) or {}
        kwargs["extra"] = {"dimensions": {**self.dimensions, **call_extra}}
        return f"{self.prefix}{msg}", kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with additional dimensions bound."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions}, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a new logger whose messages are prefixed with ``prefix``."""
        return ContextualLogger(self.logger, self.dimensions, f"{self.prefix}{prefix}")


class TextFormatter(logging.Formatter):
    """Plain text formatter that appends dimensions as key=value pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        dimensions = getattr(record, "dimensions", None)
        if dimensions:
            pairs = " ".join(f"{k}={v}" for k, v in sorted(dimensions.items()))
            line = f"{line} [{pairs}]"
        return line


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        dimensions = getattr(record, "dimensions", None)
        if dimensions:
            entry["dimensions"] = {k: str(v) for k, v in dimensions.items()}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class LoggerConfigurator:
    """Builds dimensioned loggers and installs the root handler once."""

    _configured = False

    @classmethod
    def setup(cls, level: Optional[str] = None, log_format: Optional[str] = None) -> None:
        """Install the stderr handler on the ``tokengate`` logger.

        Reads defaults from settings. Safe to call more than once; only the
        first call installs a handler.
        """
        if cls._configured:
            return

        from tokengate.core.config import LogFormat, settings

        level = level or settings.LOG_LEVEL
        log_format = log_format or settings.LOG_FORMAT.value

        handler = logging.StreamHandler(sys.stderr)
        if log_format == LogFormat.JSON.value:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(TextFormatter())

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.addHandler(handler)
        root.setLevel(level.upper())
        cls._configured = True

    @classmethod
    def configure_logger(
        cls,
        name: str,
        *,
        prefix: str = "",
        dimensions: Optional[dict[str, Any]] = None,
    ) -> ContextualLogger:
        """Return a ContextualLogger for ``name`` with the given dimensions."""
        cls.setup()
        return ContextualLogger(logging.getLogger(name), dimensions, prefix)


def truncate_key(key: str, keep: int = 8) -> str:
    """Shorten a token key for log output."""
    if len(key) <= keep:
        return key
    return f"{key[:keep]}..."


logger = LoggerConfigurator.configure_logger(ROOT_LOGGER_NAME)
